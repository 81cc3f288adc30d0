"""Package entry point - composition root. Wire dependencies and run the CLI app."""

import sys

from testwarden.domain.errors import ConfigurationError
from testwarden.infrastructure.di.container import TestwardenContainer
from testwarden.interface.cli import EXIT_USAGE, CLIAppFactory, CLIDependencies


def main() -> None:
    """Entry point: wire dependencies at composition root, create app, run."""
    try:
        container = TestwardenContainer()
    except ConfigurationError as exc:
        print(f"testwarden: configuration error: {exc}", file=sys.stderr)
        sys.exit(EXIT_USAGE)

    deps = CLIDependencies(
        config_loader=container.get_config_loader(),
        telemetry=container.get_telemetry_port(),
        filesystem=container.get_filesystem_gateway(),
        model_builder=container.get_model_builder(),
        rule_registry=container.get_rule_registry(),
        rule_catalog=container.get_rule_catalog(),
        report_emitter=container.get_report_emitter(),
    )

    app = CLIAppFactory.create_app(deps)
    app()


if __name__ == "__main__":
    main()
