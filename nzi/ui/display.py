"""Rich renderables for the dashboard screen."""

from datetime import datetime
from typing import List, Optional

from rich.console import Group
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from nzi.app.controller import DraftController
from nzi.app.dashboard import Dashboard
from nzi.app.draft import Section
from nzi.cache.entry import CacheLookup, CacheStatus
from nzi.config.model import City, Config, DisplaySettings
from nzi.timezone.clock import CityTime, TimeConverter, format_time_delta
from nzi.timezone.convert import format_duration
from nzi.weather.open_meteo import WeatherReport

STATUS_STYLES = {
    CacheStatus.FRESH: "green",
    CacheStatus.STALE: "yellow",
    CacheStatus.UNAVAILABLE: "red",
}


def _age_text(lookup: CacheLookup, now: datetime) -> str:
    if lookup.entry is None:
        return ""
    return f"updated {format_duration(lookup.entry.age(now))} ago"


def format_world_clock_table(times: List[CityTime], display: DisplaySettings) -> Table:
    """Format the world clock as a Rich table; the first row is the reference."""
    table = Table(title="World Clock")

    table.add_column("City", style="green")
    table.add_column("Code", style="cyan")
    table.add_column("Time", style="bold white", justify="right")
    table.add_column("Date", style="blue")
    table.add_column("Diff", style="magenta", justify="right")
    table.add_column("", justify="center")

    reference = times[0] if times else None
    for city_time in times:
        table.add_row(
            city_time.city_name,
            city_time.city_code,
            city_time.time_string(display.use_24_hour, display.show_seconds),
            city_time.datetime.strftime("%a %d %b"),
            format_time_delta(reference, city_time) if reference else "",
            "☀" if city_time.is_daytime() else "☾",
        )

    return table


def format_time_converter_panel(converter: TimeConverter, source_name: str, target_name: str) -> Panel:
    """Format the time converter as a Rich panel."""
    lines = [
        f"[bold cyan]{source_name}[/bold cyan]  {converter.format_input_display()}",
        f"[bold cyan]{target_name}[/bold cyan]  {converter.format_result_time()}",
    ]
    result = converter.result
    if result is not None and result.anomaly is not None:
        lines.append(f"[yellow]⚠ {result.anomaly.describe()}[/yellow]")
    return Panel("\n".join(lines), title="Time Converter", border_style="blue")


def format_currency_panel(dash: Dashboard, now: datetime) -> Panel:
    """Format the currency converter as a Rich panel."""
    converter = dash.currency_converter
    lookup = dash.rate_cache.lookup(converter.key)
    style = STATUS_STYLES[converter.rate_status]

    lines = [
        f"[bold]{converter.from_amount:,.2f} {converter.from_currency}[/bold] → [{style}]{converter.format_result()}[/{style}]",
    ]
    if converter.rate is not None:
        lines.append(f"[dim]1 {converter.from_currency} = {converter.rate:.4f} {converter.to_currency}  {_age_text(lookup, now)}[/dim]")
    elif lookup.error:
        lines.append(f"[red]{escape(lookup.error)}[/red]")
    return Panel("\n".join(lines), title="Currency", border_style=style)


def format_weather_panel(lookup: CacheLookup, city: Optional[City], now: datetime) -> Panel:
    """Format weather for one city as a Rich panel."""
    title = f"Weather - {city.name}" if city is not None else "Weather"
    style = STATUS_STYLES[lookup.status]
    report: Optional[WeatherReport] = lookup.value

    if report is None:
        body = "[red]Weather unavailable[/red]"
        if lookup.error:
            body += f"\n[dim]{escape(lookup.error)}[/dim]"
        return Panel(body, title=title, border_style=style)

    details = f"""[bold]{report.icon.symbol(report.is_day)} {report.temp_string()}[/bold] {report.description}
Feels like {report.feels_like_string()}  Humidity {report.humidity}%
Wind {report.wind_kmph} km/h {report.wind_dir}"""
    if lookup.status is CacheStatus.STALE:
        details += f"\n[yellow]stale, {_age_text(lookup, now)}[/yellow]"

    forecast = Table(show_header=True, box=None)
    forecast.add_column("Day", style="cyan")
    forecast.add_column("", justify="center")
    forecast.add_column("Max", style="red", justify="right")
    forecast.add_column("Min", style="blue", justify="right")
    forecast.add_column("Wind", justify="right")
    for day in report.forecast:
        forecast.add_row(
            day.date,
            day.icon.symbol(),
            f"{day.temp_max}°",
            f"{day.temp_min}°",
            f"{day.wind_max} km/h",
        )

    return Panel(Group(details, forecast), title=title, border_style=style)


def format_draft_panel(controller: DraftController) -> Panel:
    """Format the config editor overlay for the open draft."""
    draft = controller.draft
    if draft is None:
        return Panel("No draft open", title="Config")
    config: Config = draft.config

    tabs = "  ".join(
        f"[reverse]{s.value}{'*' if draft.dirty[s] else ''}[/reverse]" if s is controller.active_section
        else f"{s.value}{'*' if draft.dirty[s] else ''}"
        for s in Section
    )
    body: List = [Text.from_markup(tabs)]

    section = controller.active_section
    if section is Section.CITIES:
        table = Table(show_header=True, box=None)
        table.add_column("Role", style="magenta")
        table.add_column("Code", style="cyan")
        table.add_column("Name", style="green")
        table.add_column("Timezone", style="blue")
        table.add_column("Currency", style="yellow")
        table.add_row("current", config.current_city.code, config.current_city.name,
                      config.current_city.timezone, config.current_city.currency)
        table.add_row("home", config.home_city.code, config.home_city.name,
                      config.home_city.timezone, config.home_city.currency)
        for city in config.tracked_cities:
            table.add_row("tracked", city.code, city.name, city.timezone, city.currency)
        body.append(table)
    elif section is Section.CURRENCY:
        currency = config.currency
        base, quote = config.currency_pair()
        body.append(
            f"Sync with cities: {'yes' if currency.sync_with_cities else 'no'}\n"
            f"Pair: {base}/{quote}\n"
            f"Default amount: {currency.amount:g}\n"
            f"Cycle pairs: {', '.join(f'{b}/{q}' for b, q in currency.pairs)}"
        )
    elif section is Section.MAP:
        body.append(
            f"Focus: {config.map.focus_code or '(current city)'}\n"
            f"Labels: {'on' if config.map.show_labels else 'off'}"
        )
    else:
        display = config.display
        body.append(
            f"show_seconds={display.show_seconds}  use_24_hour={display.use_24_hour}\n"
            f"show_animations={display.show_animations}  animation_speed_ms={display.animation_speed_ms}\n"
            f"editor={display.editor or '(default)'}"
        )

    if controller.errors:
        errors = "\n".join(f"• {escape(str(err))}" for err in controller.errors)
        body.append(Text.from_markup(f"[red]{errors}[/red]"))

    body.append(Text.from_markup("[dim]apply | esc | tab | reset [all] | /help[/dim]"))
    return Panel(Group(*body), title="Config Editor", border_style="yellow")


HELP_TEXT = """[bold]Commands[/bold]
  /config   open config editor        /reload   re-read config file
  /edit     edit file in $EDITOR      /refresh  refetch weather and rates
  /reset    restore defaults          /help /h  toggle this help
  /quit /q  exit

[bold]Widgets[/bold]
  t HHMM    convert a time            now       converter to current time
  swap      swap converter cities     next      next target city
  amount N  set currency amount       x         swap currencies
  pair      next currency pair        w         next NZ weather city

[bold]Config editor[/bold]
  add CODE | add Name,CODE,Country,Timezone,Currency
  remove CODE   edit CODE field=value   move CODE up|down
  home CODE     current CODE            sync   pair BASE QUOTE
  amount N      focus CODE|none         labels set key=value
  section NAME  tab   reset [all]       apply  esc"""


def format_help_panel() -> Panel:
    return Panel(HELP_TEXT, title="Help", border_style="cyan")


def format_status_line(dash: Dashboard) -> Text:
    if dash.online is None:
        network = "[dim]connecting[/dim]" if dash.network else "[dim]offline mode[/dim]"
    else:
        network = "[green]online[/green]" if dash.online else "[red]offline[/red]"
    message = escape(dash.current_status() or "")
    return Text.from_markup(f"{network}  {message}")


def render_dashboard(dash: Dashboard) -> Group:
    """Everything on screen for the current tick."""
    now = dash.clock()
    config = dash.config
    converter = dash.time_converter

    parts = [
        format_world_clock_table(dash.world_times, config.display),
        format_time_converter_panel(
            converter,
            dash.city_name(converter.from_city_code),
            dash.city_name(converter.to_city_code),
        ),
        format_currency_panel(dash, now),
        format_weather_panel(dash.focus_weather(), dash.weather_city(), now),
    ]
    if dash.controller.is_editing:
        parts.append(format_draft_panel(dash.controller))
    if dash.controller.show_help:
        parts.append(format_help_panel())
    parts.append(format_status_line(dash))
    return Group(*parts)
