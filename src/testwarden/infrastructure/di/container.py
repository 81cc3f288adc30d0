from typing import TYPE_CHECKING, Any, Optional, cast

from testwarden.domain.config import ConfigurationLoader
from testwarden.domain.registry import RuleRegistry
from testwarden.infrastructure.config_file_loader import ConfigFileLoader
from testwarden.infrastructure.gateways.astroid_gateway import AstroidGateway
from testwarden.infrastructure.gateways.filesystem_gateway import FileSystemGateway
from testwarden.infrastructure.reporters import ReportEmitter
from testwarden.infrastructure.services.rule_catalog import RuleCatalog
from testwarden.infrastructure.services.source_model_builder import SourceModelBuilder
from testwarden.interface.telemetry import ProjectTelemetry

if TYPE_CHECKING:
    from testwarden.domain.protocols import (
        FileSystemProtocol,
        ReportEmitterProtocol,
        RuleCatalogProtocol,
        SourceModelBuilderProtocol,
        TelemetryPort,
    )


class TestwardenContainer:
    """Dependency Injection Container for testwarden."""

    __test__ = False

    _instance: Optional["TestwardenContainer"] = None

    def __init__(self, config_loader: ConfigurationLoader | None = None) -> None:
        self._singletons: dict[str, Any] = {}
        self._register_defaults(config_loader)

    @classmethod
    def get_instance(cls) -> "TestwardenContainer":
        """Process-wide container for entry points that cannot receive one (the pylint plugin)."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        cls._instance = None

    def _register_defaults(self, config_loader: ConfigurationLoader | None) -> None:
        """Register default implementations for protocols."""
        if config_loader is None:
            config_dict, tool_section = ConfigFileLoader.load_config_from_fs()
            config_loader = ConfigurationLoader(config_dict, tool_section)
        self.register_singleton("ConfigurationLoader", config_loader)

        telemetry = ProjectTelemetry("TESTWARDEN", "cyan", "Test quality scan online")
        self.register_singleton("TelemetryPort", telemetry)
        astroid_gateway = AstroidGateway()
        self.register_singleton("AstroidGateway", astroid_gateway)
        self.register_singleton("FileSystemGateway", FileSystemGateway())
        self.register_singleton(
            "SourceModelBuilder", SourceModelBuilder(astroid_gateway, config_loader))

        # Rule catalog first: the report emitter reads SARIF rule descriptors from it.
        catalog = RuleCatalog()
        self.register_singleton("RuleCatalog", catalog)
        self.register_singleton("ReportEmitter", ReportEmitter(catalog))
        self.register_singleton("RuleRegistry", RuleRegistry.from_config(config_loader))

    # JUSTIFICATION: DI Container must handle any type of service
    def register_singleton(self, key: str, instance: Any) -> None:  # pylint: disable=banned-any-usage
        """Register a singleton instance."""
        self._singletons[key] = instance

    # JUSTIFICATION: DI Container must return any type of service
    def get(self, key: str) -> Any:  # pylint: disable=banned-any-usage
        """Retrieve a dependency by key. Prefer explicit get_* methods for type safety."""
        if key in self._singletons:
            return self._singletons[key]
        raise ValueError(f"Dependency '{key}' not registered.")

    def get_config_loader(self) -> ConfigurationLoader:
        """Return the configuration loader (created at composition root)."""
        return cast(ConfigurationLoader, self.get("ConfigurationLoader"))

    def get_telemetry_port(self) -> "TelemetryPort":
        """Return the telemetry/UI port."""
        return cast("TelemetryPort", self.get("TelemetryPort"))

    def get_filesystem_gateway(self) -> "FileSystemProtocol":
        """Return the filesystem gateway."""
        return cast("FileSystemProtocol", self.get("FileSystemGateway"))

    def get_model_builder(self) -> "SourceModelBuilderProtocol":
        return cast("SourceModelBuilderProtocol", self.get("SourceModelBuilder"))

    def get_rule_catalog(self) -> "RuleCatalogProtocol":
        """Return the rule catalog (rule_registry.yaml)."""
        return cast("RuleCatalogProtocol", self.get("RuleCatalog"))

    def get_report_emitter(self) -> "ReportEmitterProtocol":
        return cast("ReportEmitterProtocol", self.get("ReportEmitter"))

    def get_rule_registry(self) -> RuleRegistry:
        """Return every known rule, configured once from [tool.testwarden]."""
        return cast(RuleRegistry, self.get("RuleRegistry"))
