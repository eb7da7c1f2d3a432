import argparse
import logging
import sys

from nicegui import app as ng_app
from nicegui import ui
from nicegui.elements.tooltip import Tooltip

from botconsole import __version__
from botconsole.common.logging_config import TRACE, configure_logging
from botconsole.common.theme import apply_theme, get_theme, inject_layout_css, toggle_theme
from botconsole.config import Config
from botconsole.constants import EVT_POSITION_UPDATE, LIFECYCLE_TOPICS, LOG_LEVEL
from botconsole.core.bus import MessageBus
from botconsole.pages.comms_log import CommsLogPage
from botconsole.pages.configure import ConfigurePage
from botconsole.pages.control import ControlPage
from botconsole.pages.pid import PidPage
from botconsole.pages.telemetry import TelemetryPage
from botconsole.services.robot_link import RobotLink
from botconsole.state import robot_state

# Runtime configuration (resolved later from CLI/env)
config = Config.from_env()

# ------------------------ Global UI/state ------------------------

bus = MessageBus()
link = RobotLink(bus, config.ws_uri, robot_state)
# Shared telemetry state is updated before any page handler runs
bus.subscribe(EVT_POSITION_UPDATE, robot_state.apply_position_update)

link_status_label: ui.label | None = None
link_tooltip: Tooltip | None = None

# Page instances (the Control page is built per client, see build_control_tab)
telemetry_page_instance = TelemetryPage(bus, link)
pid_page_instance = PidPage(bus, link)
configure_page_instance = ConfigurePage(bus, link)
comms_log_page_instance = CommsLogPage()

_LINK_COLORS = {
    "open": "#21BA45",
    "connecting": "#F2C037",
}

# --------------- Link controls ---------------


def connect_link() -> None:
    try:
        link.connect()
        update_link_status()
    except Exception as e:
        logging.error("Connect failed: %s", e)


def disconnect_link() -> None:
    try:
        link.disconnect()
        update_link_status()
    except Exception as e:
        logging.error("Disconnect failed: %s", e)


def update_link_status(_payload: object = None) -> None:
    """Reflect the link state in the footer indicator."""
    state = robot_state.link_state
    if link_status_label:
        link_status_label.text = "LINK"
        if link_tooltip:
            link_tooltip.text = f"{state}: {link.uri}"
        link_status_label.style(f"color: {_LINK_COLORS.get(state, '#DB2828')}")


for _topic in LIFECYCLE_TOPICS:
    bus.subscribe(_topic, update_link_status)


# --------------- Layout ---------------


def build_header_and_tabs() -> None:
    with (
        ui.header().classes("p-0"),
        ui.row().classes("w-full items-center justify-between"),
    ):
        with ui.tabs() as main_tabs:
            control_tab = ui.tab("Control")
            telemetry_tab = ui.tab("Telemetry")
            pid_tab = ui.tab("PID")
            configure_tab = ui.tab("Configure")
            log_tab = ui.tab("Communications log")
        ui.label(f"Robot console {__version__}").classes("text-sm text-center")
        with ui.row().classes("items-center gap-2 pr-2"):
            ui.button(icon="contrast", on_click=lambda: toggle_theme()).props(
                "round unelevated"
            )

    with ui.tab_panels(main_tabs, value=control_tab).classes("w-full"):
        with ui.tab_panel(control_tab):
            build_control_tab()
        with ui.tab_panel(telemetry_tab):
            telemetry_page_instance.build()
        with ui.tab_panel(pid_tab):
            pid_page_instance.build()
        with ui.tab_panel(configure_tab):
            configure_page_instance.build()
        with ui.tab_panel(log_tab):
            comms_log_page_instance.build()


def build_control_tab() -> ControlPage:
    """Each client gets its own dial, drag state and sample timer."""
    page = ControlPage(link)
    page.build()
    return page


def build_footer() -> None:
    with ui.footer().classes("justify-between items-center px-3 py-1"):
        with ui.row().classes("items-center gap-4"):
            global link_status_label, link_tooltip
            link_status_label = ui.label("LINK").classes("text-sm")
            with link_status_label:
                link_tooltip = ui.tooltip(link.uri)
            ui.label("|").classes("text-sm text-[var(--bc-muted)]")
            ui.label().bind_text_from(robot_state, "link_state").classes("text-sm")
            update_link_status()
        with ui.row().classes("items-center gap-2"):
            ui.button("Connect", on_click=connect_link).props("color=positive")
            ui.button("Disconnect", on_click=disconnect_link).props("color=negative")


@ui.page("/")
def index() -> None:
    apply_theme(get_theme())
    ui.query(".nicegui-content").classes("p-0")
    inject_layout_css()
    build_header_and_tabs()
    build_footer()


async def _app_startup() -> None:
    if config.AUTO_CONNECT:
        connect_link()


async def _app_shutdown() -> None:
    link.disconnect()
    await link.transport.wait_closed()


ng_app.on_startup(_app_startup)
ng_app.on_shutdown(_app_shutdown)


# --------------- CLI ---------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Robot operator console (NiceGUI)")
    parser.add_argument("--host", default=config.UI_HOST, help="Webserver bind host")
    parser.add_argument("--port", type=int, default=config.UI_PORT, help="Webserver bind port")
    parser.add_argument("--robot-host", default=config.ROBOT_HOST, help="Robot host to connect to")
    parser.add_argument("--robot-port", type=int, default=config.ROBOT_PORT, help="Robot WebSocket port")
    parser.add_argument("--ws-path", default=config.ROBOT_PATH, help="Robot WebSocket path")
    parser.add_argument(
        "--log-level",
        choices=["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set log level",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity; -v=INFO, -vv=DEBUG, -vvv=TRACE",
    )
    parser.add_argument("-q", "--quiet", action="store_true", help="Enable WARNING logging")
    parser.add_argument(
        "--no-connect",
        action="store_true",
        help="Do not connect to the robot at startup (overrides BOTCONSOLE_AUTO_CONNECT)",
    )
    return parser


def resolve_log_level(args: argparse.Namespace) -> int:
    """Explicit --log-level > -v/-q > env default from constants."""
    if args.log_level:
        if args.log_level == "TRACE":
            return TRACE
        return getattr(logging, args.log_level)
    if args.verbose >= 3:
        return TRACE
    if args.verbose >= 2:
        return logging.DEBUG
    if args.verbose == 1:
        return logging.INFO
    if args.quiet:
        return logging.WARNING
    return LOG_LEVEL


def apply_args(args: argparse.Namespace) -> None:
    """Fold CLI values into the runtime config and the robot link."""
    config.UI_HOST = args.host
    config.UI_PORT = int(args.port)
    config.ROBOT_HOST = args.robot_host
    config.ROBOT_PORT = int(args.robot_port)
    config.ROBOT_PATH = args.ws_path
    if args.no_connect:
        config.AUTO_CONNECT = False
    link.uri = config.ws_uri


def main(argv: list[str] | None = None) -> None:
    args, _ = build_parser().parse_known_args(argv)
    apply_args(args)

    configure_logging(resolve_log_level(args))
    logging.info("Webserver bind: host=%s port=%s", config.UI_HOST, config.UI_PORT)
    logging.info("Robot link: %s (auto-connect=%s)", config.ws_uri, config.AUTO_CONNECT)

    ui.run(
        title="Robot Console",
        host=config.UI_HOST,
        port=config.UI_PORT,
        reload=False,
        show=False,
        loop="uvloop" if sys.platform != "win32" else "asyncio",
        http="httptools",
        ws="wsproto",
        binding_refresh_interval=0.05,
    )


if __name__ in {"__main__", "__mp_main__"}:
    main()
