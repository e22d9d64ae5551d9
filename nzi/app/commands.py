"""
Command dispatch for the dashboard prompt.

Slash commands work in normal mode. While the config editor is open,
input lines are editor operations on the draft instead; only /help and
/quit are honoured there. Every handler returns the status line to show.
"""

import logging
import shlex
from typing import Callable, Dict, List

from nzi.app.controller import NoDraftError
from nzi.app.dashboard import Dashboard
from nzi.app.draft import Section
from nzi.config.cities import CITIES
from nzi.config.model import City

logger = logging.getLogger(__name__)

CommandHandler = Callable[[Dashboard, List[str]], str]


def _cmd_config(dash: Dashboard, args: List[str]) -> str:
    dash.controller.begin_edit()
    return "Editing config (apply to save, esc to discard)"


def _cmd_reload(dash: Dashboard, args: List[str]) -> str:
    result = dash.controller.reload()
    if result.source == "fallback":
        return f"Reload failed, keeping running config: {'; '.join(result.warnings)}"
    if result.migrated:
        return f"Config reloaded ({len(result.migration_warnings)} legacy entries migrated)"
    return "Config reloaded"


def _cmd_edit(dash: Dashboard, args: List[str]) -> str:
    dash.edit_requested = True
    return f"Opening {dash.controller.store.path} in editor"


def _cmd_quit(dash: Dashboard, args: List[str]) -> str:
    dash.controller.discard()
    dash.quit()
    return "Goodbye"


def _cmd_help(dash: Dashboard, args: List[str]) -> str:
    shown = dash.controller.toggle_help()
    return "Help shown" if shown else "Help hidden"


def _cmd_refresh(dash: Dashboard, args: List[str]) -> str:
    started = dash.request_refresh(force=True)
    if not dash.network:
        return "Network disabled"
    return f"Refreshing {started} item(s)"


def _cmd_reset(dash: Dashboard, args: List[str]) -> str:
    return "Reset to defaults: " + dash.controller.reset_to_defaults().summary()


COMMANDS: Dict[str, CommandHandler] = {
    "/config": _cmd_config,
    "/reload": _cmd_reload,
    "/edit": _cmd_edit,
    "/quit": _cmd_quit,
    "/q": _cmd_quit,
    "/help": _cmd_help,
    "/h": _cmd_help,
    "/refresh": _cmd_refresh,
    "/reset": _cmd_reset,
}

# Commands still available while the editor is open
EDITOR_PASSTHROUGH = {"/help", "/h", "/quit", "/q"}


# Widget actions in normal mode

def _act_time(dash: Dashboard, args: List[str]) -> str:
    if not args or not args[0].isdigit():
        return "Usage: t HHMM"
    dash.set_time_input(args[0][:4])
    return f"Converting {dash.time_converter.format_input_time()}"


def _act_now(dash: Dashboard, args: List[str]) -> str:
    dash.time_to_now()
    return "Converter set to now"


def _act_swap(dash: Dashboard, args: List[str]) -> str:
    dash.swap_time_cities()
    return "Swapped converter cities"


def _act_next(dash: Dashboard, args: List[str]) -> str:
    dash.cycle_time_target()
    return f"Converting to {dash.city_name(dash.time_converter.to_city_code)}"


def _act_amount(dash: Dashboard, args: List[str]) -> str:
    if not args:
        return "Usage: amount N"
    dash.set_amount(args[0])
    return f"Amount {dash.currency_converter.from_amount:g} {dash.currency_converter.from_currency}"


def _act_xswap(dash: Dashboard, args: List[str]) -> str:
    dash.swap_currencies()
    return "Swapped currencies"


def _act_pair(dash: Dashboard, args: List[str]) -> str:
    dash.cycle_currency_pair()
    base, quote = dash.currency_converter.pair
    return f"Currency pair {base}/{quote}"


def _act_weather(dash: Dashboard, args: List[str]) -> str:
    return f"Weather for {dash.cycle_weather_city()}"


ACTIONS: Dict[str, CommandHandler] = {
    "t": _act_time,
    "now": _act_now,
    "swap": _act_swap,
    "next": _act_next,
    "amount": _act_amount,
    "x": _act_xswap,
    "pair": _act_pair,
    "w": _act_weather,
}


# Editor operations

def _parse_city(text: str) -> City:
    """Catalog code, or 'Name,CODE,Country,Timezone,Currency'."""
    parts = [p.strip() for p in text.split(",")]
    if len(parts) == 1:
        code = parts[0].upper()
        if code not in CITIES:
            raise ValueError(f"Unknown city code {code}; use Name,CODE,Country,Timezone,Currency")
        return City.from_catalog(CITIES[code])
    if len(parts) != 5:
        raise ValueError("Expected Name,CODE,Country,Timezone,Currency")
    name, code, country, tz, currency = parts
    return City(name=name, code=code.upper(), country=country, timezone=tz, currency=currency.upper())


def _parse_assignments(args: List[str]) -> Dict[str, str]:
    changes = {}
    for arg in args:
        key, sep, value = arg.partition("=")
        if not sep or not key:
            raise ValueError(f"Expected key=value, got {arg!r}")
        changes[key.strip()] = value.strip()
    return changes


def _ed_add(dash: Dashboard, args: List[str]) -> str:
    if not args:
        return "Usage: add CODE | add Name,CODE,Country,Timezone,Currency"
    city = _parse_city(" ".join(args))
    dash.controller.add_tracked_city(city)
    return f"Added {city.name}"


def _ed_remove(dash: Dashboard, args: List[str]) -> str:
    if not args:
        return "Usage: remove CODE"
    return f"Removed {dash.controller.remove_tracked_city(args[0]).name}"


def _ed_edit(dash: Dashboard, args: List[str]) -> str:
    if len(args) < 2:
        return "Usage: edit CODE field=value ..."
    city = dash.controller.update_tracked_city(args[0], **_parse_assignments(args[1:]))
    return f"Updated {city.name}"


def _ed_move(dash: Dashboard, args: List[str]) -> str:
    if len(args) != 2 or args[1] not in ("up", "down"):
        return "Usage: move CODE up|down"
    dash.controller.move_tracked_city(args[0], -1 if args[1] == "up" else 1)
    return f"Moved {args[0].upper()} {args[1]}"


def _ed_home(dash: Dashboard, args: List[str]) -> str:
    if not args:
        return "Usage: home CODE"
    return f"Home city is now {dash.controller.set_home_from_tracked(args[0]).name}"


def _ed_current(dash: Dashboard, args: List[str]) -> str:
    if not args:
        return "Usage: current CODE"
    return f"Current city is now {dash.controller.set_current_from_tracked(args[0]).name}"


def _ed_sync(dash: Dashboard, args: List[str]) -> str:
    synced = dash.controller.toggle_currency_sync()
    return "Currency follows cities" if synced else "Currency pair set manually"


def _ed_pair(dash: Dashboard, args: List[str]) -> str:
    if len(args) != 2:
        return "Usage: pair BASE QUOTE"
    dash.controller.set_manual_pair(args[0], args[1])
    return f"Manual pair {args[0].upper()}/{args[1].upper()}"


def _ed_amount(dash: Dashboard, args: List[str]) -> str:
    if not args:
        return "Usage: amount N"
    try:
        amount = float(args[0])
    except ValueError:
        return f"Not a number: {args[0]}"
    dash.controller.set_amount(amount)
    return f"Default amount {amount:g}"


def _ed_focus(dash: Dashboard, args: List[str]) -> str:
    if not args:
        return "Usage: focus CODE|none"
    code = None if args[0].lower() == "none" else args[0]
    dash.controller.set_map_focus(code)
    return f"Map focus {code.upper() if code else 'cleared'}"


def _ed_labels(dash: Dashboard, args: List[str]) -> str:
    shown = dash.controller.toggle_map_labels()
    return "Map labels on" if shown else "Map labels off"


def _ed_set(dash: Dashboard, args: List[str]) -> str:
    if not args:
        return "Usage: set key=value ..."
    changes = _parse_assignments(args)
    dash.controller.set_display(**changes)
    return f"Updated {', '.join(sorted(changes))}"


def _ed_section(dash: Dashboard, args: List[str]) -> str:
    if args:
        dash.controller.set_active_section(Section(args[0].lower()))
    else:
        dash.controller.next_section()
    return f"Section: {dash.controller.active_section.value}"


def _ed_reset(dash: Dashboard, args: List[str]) -> str:
    if args and args[0] == "all":
        dash.controller.reset_all()
        return "Draft reset to defaults"
    dash.controller.reset_active_section()
    return f"Section {dash.controller.active_section.value} reset to defaults"


def _ed_apply(dash: Dashboard, args: List[str]) -> str:
    return dash.controller.apply().summary()


def _ed_discard(dash: Dashboard, args: List[str]) -> str:
    dash.controller.discard()
    return "Changes discarded"


EDITOR_COMMANDS: Dict[str, CommandHandler] = {
    "add": _ed_add,
    "remove": _ed_remove,
    "edit": _ed_edit,
    "move": _ed_move,
    "home": _ed_home,
    "current": _ed_current,
    "sync": _ed_sync,
    "pair": _ed_pair,
    "amount": _ed_amount,
    "focus": _ed_focus,
    "labels": _ed_labels,
    "set": _ed_set,
    "section": _ed_section,
    "tab": _ed_section,
    "reset": _ed_reset,
    "apply": _ed_apply,
    "save": _ed_apply,
    "esc": _ed_discard,
    "cancel": _ed_discard,
}


def execute(dash: Dashboard, line: str) -> str:
    """
    Run one line of input and set the dashboard status.

    Bad input never raises; the problem is reported on the status line.
    """
    try:
        words = shlex.split(line)
    except ValueError as e:
        return _status(dash, f"Could not parse input: {e}")
    if not words:
        return _status(dash, "")

    name, args = words[0].lower(), words[1:]
    if dash.controller.is_editing and name not in EDITOR_PASSTHROUGH:
        handler = EDITOR_COMMANDS.get(name)
        if handler is None:
            if name.startswith("/"):
                return _status(dash, "Finish editing first (apply or esc)")
            return _status(dash, f"Unknown editor command: {name}")
    elif name.startswith("/"):
        handler = COMMANDS.get(name)
        if handler is None:
            return _status(dash, f"Unknown command: {name}")
    else:
        handler = ACTIONS.get(name)
        if handler is None:
            return _status(dash, f"Unknown action: {name} (try /help)")

    try:
        message = handler(dash, args)
    except (ValueError, NoDraftError) as e:
        logger.info(f"Command {name!r} rejected: {e}")
        message = str(e)
    return _status(dash, message)


def _status(dash: Dashboard, message: str) -> str:
    if message:
        dash.set_status(message)
    return message
