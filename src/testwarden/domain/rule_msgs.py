"""Pure message-building from a registry dict. No I/O or infrastructure imports."""

from collections.abc import Mapping

from testwarden.domain.registry_types import RuleRegistryEntry

MESSAGE_TEMPLATE = "%s"


class RuleMsgBuilder:
    """
    Builds the pylint msgs dict and the rule id -> message code map from the catalog.
    """

    @staticmethod
    def code_map(registry: Mapping[str, RuleRegistryEntry]) -> dict[str, str]:
        """{rule_id: pylint code} for every entry that declares one."""
        return {
            rule_id: str(entry["pylint_code"])
            for rule_id, entry in registry.items()
            if isinstance(entry, dict) and entry.get("pylint_code")
        }

    @staticmethod
    def build_msgs(registry: Mapping[str, RuleRegistryEntry]) -> dict[str, tuple[str, str, str]]:
        """Returns { code: (message_template, symbol, description) } for checker.msgs."""
        result: dict[str, tuple[str, str, str]] = {}
        for rule_id, code in RuleMsgBuilder.code_map(registry).items():
            entry = registry[rule_id]
            symbol = entry.get("symbol") or rule_id.lower().replace("_", "-")
            desc = entry.get("short_description") or entry.get("title") or rule_id
            result[code] = (MESSAGE_TEMPLATE, str(symbol), str(desc))
        return result
