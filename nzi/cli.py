"""
nzi command line entry point.

Usage:
    nzi
    nzi --config ~/my-nzi.yaml --log-level DEBUG
    nzi --no-network
"""

import argparse
import logging
import shlex
import subprocess
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from rich.console import Console
from rich.prompt import Prompt

from nzi import __version__
from nzi.app.commands import execute
from nzi.app.controller import DraftController
from nzi.app.dashboard import Dashboard
from nzi.config.settings import get_settings
from nzi.config.store import ConfigStore
from nzi.ui.display import render_dashboard

logger = logging.getLogger(__name__)


def configure_logging(log_file: Path, level: str) -> None:
    """Send logs to a file; the terminal belongs to the dashboard."""
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.FileHandler(log_file, encoding="utf-8")],
    )


def open_in_editor(editor: str, path: Path) -> int:
    """Run the user's editor on the config file and wait for it to exit."""
    command = shlex.split(editor) + [str(path)]
    logger.info(f"Launching editor: {command}")
    try:
        return subprocess.call(command)
    except OSError as e:
        logger.error(f"Could not launch editor {editor!r}: {e}")
        return 127


def run(dashboard: Dashboard, console: Console) -> None:
    """Prompt loop: render, read a command, apply it, repeat."""
    while dashboard.running:
        dashboard.tick()
        console.clear()
        console.print(render_dashboard(dashboard))

        prompt = "[yellow]config>[/yellow]" if dashboard.controller.is_editing else "[bold]nzi>[/bold]"
        try:
            line = Prompt.ask(prompt, default="", show_default=False, console=console)
        except (KeyboardInterrupt, EOFError):
            logger.info("Interrupted, quitting")
            break

        try:
            execute(dashboard, line)
        except Exception as e:
            dashboard.set_status(f"Error: {e}")
            logger.error(f"Command error: {e}", exc_info=True)

        if dashboard.edit_requested:
            dashboard.edit_requested = False
            config = dashboard.config
            editor = config.display.editor or dashboard.settings.fallback_editor()
            code = open_in_editor(editor, dashboard.controller.store.path)
            if code != 0:
                dashboard.set_status(f"Editor exited with status {code}")
            else:
                execute(dashboard, "/reload")


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    load_dotenv()
    settings = get_settings()

    parser = argparse.ArgumentParser(
        prog="nzi",
        description="Terminal dashboard for life between New Zealand and home",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"Path to config YAML (default: {settings.resolved_config_path})",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=settings.log_level.upper(),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    parser.add_argument(
        "--no-network",
        action="store_true",
        help="Do not fetch weather or exchange rates",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    args = parser.parse_args(argv)

    configure_logging(settings.resolved_log_file, args.log_level)
    config_path = args.config.expanduser() if args.config else settings.resolved_config_path
    logger.info(f"Starting nzi {__version__} with config {config_path}")

    store = ConfigStore(config_path)
    result = store.load()
    controller = DraftController(store, result.config)
    dashboard = Dashboard(controller, settings, network=not args.no_network)

    if result.warnings:
        dashboard.set_status(result.warnings[0])
    elif result.migrated:
        dashboard.set_status(f"Migrated {len(result.migration_warnings)} legacy config entries")

    dashboard.warm_up()
    console = Console()
    try:
        run(dashboard, console)
    finally:
        dashboard.shutdown()
        logger.info("Shutdown complete")

    console.print("[yellow]Goodbye![/yellow]")
    return 0


if __name__ == "__main__":
    sys.exit(main())
