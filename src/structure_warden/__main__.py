"""Package entry point - composition root. Wire dependencies and run the CLI app."""

import logging
import os
import sys

from structure_warden.domain.errors import ConfigurationError
from structure_warden.infrastructure.di.container import WardenContainer
from structure_warden.interface.cli import EXIT_FATAL, CLIAppFactory, CLIDependencies
from structure_warden.interface.reporters import TerminalScanReporter


def main() -> None:
    """Entry point: wire dependencies at composition root, create app, run."""
    level = os.environ.get("WARDEN_LOG_LEVEL")
    if level:
        logging.basicConfig(
            level=level.upper(),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    try:
        container = WardenContainer.get_instance()
    except ConfigurationError as exc:
        print(f"ERROR {exc}", file=sys.stderr)
        sys.exit(EXIT_FATAL)

    deps = CLIDependencies(
        config_loader=container.get_config_loader(),
        telemetry=container.get_telemetry_port(),
        pipeline=container.get_pipeline(),
        reporter=TerminalScanReporter(),
        compliance_writer=container.get_compliance_writer(),
        backup_manager_factory=container.create_backup_manager,
    )

    app = CLIAppFactory.create_app(deps)
    app()


if __name__ == "__main__":
    main()
