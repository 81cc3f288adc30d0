"""RuleCatalog: loads the rule registry (titles, practices, guidance, defaults)."""

from pathlib import Path
from typing import cast

import yaml

from testwarden.domain.errors import ConfigurationError
from testwarden.domain.findings import META_RULE_ID
from testwarden.domain.protocols import RuleCatalogProtocol
from testwarden.domain.registry_types import RuleRegistryEntry


class RuleCatalog(RuleCatalogProtocol):
    """Loads rule_registry.yaml and answers metadata questions about rule ids."""

    def __init__(self, registry_path: str | None = None) -> None:
        if registry_path is not None:
            self._path = Path(registry_path)
        else:
            # Default: packaged resource next to this package
            _base = Path(__file__).resolve().parent.parent.parent
            self._path = _base / "resources" / "rule_registry.yaml"
        self._registry: dict[str, RuleRegistryEntry] = {}
        self._load()

    def _load(self) -> None:
        if not self._path.exists():
            self._registry = {}
            return
        with open(self._path, encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as exc:
                raise ConfigurationError(f"{self._path}: malformed rule registry ({exc})") from exc
        self._registry = cast(dict[str, RuleRegistryEntry], data) if isinstance(data, dict) else {}

    def get_registry(self) -> dict[str, RuleRegistryEntry]:
        """Return a shallow copy of the loaded registry for use by domain/use_cases."""
        return dict(self._registry)

    def get_entry(self, rule_id: str) -> RuleRegistryEntry | None:
        entry = self._registry.get(rule_id)
        return cast(RuleRegistryEntry, dict(entry)) if entry else None

    def default_rule_ids(self) -> tuple[str, ...]:
        """Rule ids enabled when neither --rules nor [tool.testwarden] rules is given."""
        return tuple(
            rule_id
            for rule_id, entry in self._registry.items()
            if rule_id != META_RULE_ID and entry.get("default_enabled", True)
        )

    def get_title(self, rule_id: str) -> str:
        entry = self.get_entry(rule_id)
        if not entry:
            return rule_id.replace("_", " ").title()
        return str(entry.get("title") or rule_id)

    def get_guidance(self, rule_id: str) -> str:
        entry = self.get_entry(rule_id)
        if entry and "guidance" in entry:
            return str(entry["guidance"]).strip()
        return "See the rule description. Fix the test at the reported location."
