"""Console telemetry: rich output mirrored to the ``structure_warden`` logger."""

import logging
from typing import Optional

from rich.console import Console
from rich.panel import Panel

from structure_warden import __version__

logger = logging.getLogger("structure_warden")


class ProjectTelemetry:
    """Implements TelemetryPort for the CLI."""

    def __init__(
        self,
        project_name: str,
        color: str = "cyan",
        welcome_msg: str = "",
        console: Optional[Console] = None,
    ) -> None:
        self.project_name = project_name
        self.color = color
        self.welcome_msg = welcome_msg
        self.console = console or Console(highlight=False)
        self.err_console = Console(stderr=True, highlight=False)

    def handshake(self) -> None:
        title = f"[bold {self.color}]{self.project_name}[/] v{__version__}"
        self.console.print(Panel(self.welcome_msg or self.project_name, title=title, expand=False))
        logger.info("%s %s started", self.project_name, __version__)

    def step(self, message: str) -> None:
        self.console.print(f"[{self.color}]{self.project_name}[/] {message}", markup=True)
        logger.info(message)

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]WARNING[/] {message}")
        logger.warning(message)

    def error(self, message: str) -> None:
        self.err_console.print(f"[bold red]ERROR[/] {message}")
        logger.error(message)
