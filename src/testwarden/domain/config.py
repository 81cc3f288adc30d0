"""Configuration for testwarden. Immutable value object created by Infrastructure."""

from __future__ import annotations

import logging

from testwarden.domain.constants import (
    DEFAULT_ACTION_VERBS,
    DEFAULT_ASSERTION_FUNCTIONS,
    DEFAULT_CONDITION_TOKENS,
    DEFAULT_EXTERNAL_CALLS,
    DEFAULT_EXTERNAL_TYPES,
    DEFAULT_NONDETERMINISTIC_CALLS,
    DEFAULT_ORDERING_MARKERS,
    DEFAULT_OUTCOME_TOKENS,
    DEFAULT_TEST_CLASS_PREFIX,
    DEFAULT_TEST_FILE_PATTERNS,
    DEFAULT_TEST_FUNCTION_PREFIX,
)
from testwarden.domain.errors import ConfigurationError

logger = logging.getLogger(__name__)

_LIST_KEYS = frozenset(
    {
        "rules",
        "exclude_rules",
        "test_file_patterns",
        "exclude_paths",
        "external_calls",
        "external_types",
        "nondeterministic_calls",
        "assertion_functions",
        "ordering_markers",
    }
)
_STRING_KEYS = frozenset({"fail_on", "format", "test_function_prefix", "test_class_prefix"})
_NAMING_KEYS = frozenset({"action_verbs", "outcome_tokens", "condition_tokens"})
_KNOWN_KEYS = _LIST_KEYS | _STRING_KEYS | {"jobs", "naming"}
_FAIL_ON_VALUES = ("error", "warn", "none")
_FORMAT_VALUES = ("text", "json", "sarif")


class ConfigurationLoader:
    """
    Immutable configuration for testwarden.

    Created by Infrastructure from (config_dict, tool_section). Domain does not
    read the filesystem; Infrastructure calls ConfigFileLoader.load_config_from_fs()
    and constructs ConfigurationLoader(config_dict, tool_section) at composition root.
    Pattern lists from [tool.testwarden] extend the built-in defaults.
    """

    def __init__(
        self,
        config_dict: dict[str, object] | None = None,
        tool_section: dict[str, object] | None = None,
    ) -> None:
        self._config: dict[str, object] = dict(config_dict or {})
        self._tool_section: dict[str, object] = dict(tool_section or {})
        if self._config:
            self.validate_config(self._config)

    def validate_config(self, config: dict[str, object]) -> None:
        """Reject wrongly typed values; warn about keys testwarden does not know."""
        for key in sorted(config):
            if key not in _KNOWN_KEYS:
                logger.warning(
                    "Configuration Warning: unknown key '%s' in [tool.testwarden] is ignored.", key)
        for key in sorted(_LIST_KEYS & set(config)):
            ConfigurationLoader._require_str_list(key, config[key])
        for key in sorted(_STRING_KEYS & set(config)):
            if not isinstance(config[key], str):
                raise ConfigurationError(f"[tool.testwarden] '{key}' must be a string")
        fail_on = config.get("fail_on")
        if fail_on is not None and fail_on not in _FAIL_ON_VALUES:
            raise ConfigurationError(
                f"[tool.testwarden] 'fail_on' must be one of {', '.join(_FAIL_ON_VALUES)}, got '{fail_on}'")
        fmt = config.get("format")
        if fmt is not None and fmt not in _FORMAT_VALUES:
            raise ConfigurationError(
                f"[tool.testwarden] 'format' must be one of {', '.join(_FORMAT_VALUES)}, got '{fmt}'")
        jobs = config.get("jobs")
        if jobs is not None and (isinstance(jobs, bool) or not isinstance(jobs, int) or jobs < 1):
            raise ConfigurationError("[tool.testwarden] 'jobs' must be a positive integer")
        naming = config.get("naming")
        if naming is not None:
            if not isinstance(naming, dict):
                raise ConfigurationError("[tool.testwarden.naming] must be a table")
            for key in sorted(naming):
                if key not in _NAMING_KEYS:
                    logger.warning(
                        "Configuration Warning: unknown key '%s' in [tool.testwarden.naming] is ignored.", key)
                    continue
                ConfigurationLoader._require_str_list(f"naming.{key}", naming[key])

    @staticmethod
    def _require_str_list(key: str, value: object) -> None:
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise ConfigurationError(f"[tool.testwarden] '{key}' must be a list of strings")

    def _get_list(self, key: str) -> list[str]:
        raw = self._config.get(key, [])
        return [str(x) for x in raw] if isinstance(raw, list) else []

    def _extended(self, defaults: tuple[str, ...], key: str) -> tuple[str, ...]:
        custom = [item for item in self._get_list(key) if item not in defaults]
        return tuple(defaults) + tuple(custom)

    # Rule selection

    @property
    def rules(self) -> tuple[str, ...] | None:
        """Explicit rule selection, or None to use the catalog defaults."""
        if "rules" not in self._config:
            return None
        return tuple(self._get_list("rules"))

    @property
    def exclude_rules(self) -> tuple[str, ...]:
        return tuple(self._get_list("exclude_rules"))

    # Run options

    @property
    def fail_on(self) -> str:
        return str(self._config.get("fail_on", "error"))

    @property
    def output_format(self) -> str:
        return str(self._config.get("format", "text"))

    @property
    def jobs(self) -> int | None:
        raw = self._config.get("jobs")
        return raw if isinstance(raw, int) and not isinstance(raw, bool) else None

    # Discovery

    @property
    def test_file_patterns(self) -> tuple[str, ...]:
        """Patterns replace (not extend) the defaults: projects name test files their own way.

        Without test_file_patterns, pytest's own python_files setting applies.
        """
        configured = self._get_list("test_file_patterns")
        if configured:
            return tuple(configured)
        return self._pytest_option("python_files") or DEFAULT_TEST_FILE_PATTERNS

    def _pytest_option(self, key: str) -> tuple[str, ...]:
        """A [tool.pytest.ini_options] value; pytest accepts a list or a space-separated string."""
        pytest_section = self._tool_section.get("pytest")
        ini_options = pytest_section.get("ini_options") if isinstance(pytest_section, dict) else None
        raw = ini_options.get(key) if isinstance(ini_options, dict) else None
        if isinstance(raw, str):
            return tuple(raw.split())
        if isinstance(raw, list):
            return tuple(str(item) for item in raw)
        return ()

    @property
    def exclude_paths(self) -> tuple[str, ...]:
        """Path fragments skipped during directory discovery."""
        return tuple(self._get_list("exclude_paths"))

    @property
    def test_function_prefix(self) -> str:
        return str(self._config.get("test_function_prefix", DEFAULT_TEST_FUNCTION_PREFIX))

    @property
    def test_class_prefix(self) -> str:
        return str(self._config.get("test_class_prefix", DEFAULT_TEST_CLASS_PREFIX))

    # Rule tunables

    @property
    def external_calls(self) -> tuple[str, ...]:
        return self._extended(DEFAULT_EXTERNAL_CALLS, "external_calls")

    @property
    def external_types(self) -> tuple[str, ...]:
        return self._extended(DEFAULT_EXTERNAL_TYPES, "external_types")

    @property
    def nondeterministic_calls(self) -> tuple[str, ...]:
        return self._extended(DEFAULT_NONDETERMINISTIC_CALLS, "nondeterministic_calls")

    @property
    def assertion_functions(self) -> tuple[str, ...]:
        return self._extended(DEFAULT_ASSERTION_FUNCTIONS, "assertion_functions")

    @property
    def ordering_markers(self) -> tuple[str, ...]:
        return self._extended(DEFAULT_ORDERING_MARKERS, "ordering_markers")

    # Behavior naming lexicon ([tool.testwarden.naming])

    @property
    def naming_config(self) -> dict[str, object]:
        raw = self._config.get("naming", {})
        return raw if isinstance(raw, dict) else {}

    def _naming_tokens(self, defaults: tuple[str, ...], key: str) -> tuple[str, ...]:
        raw = self.naming_config.get(key, [])
        custom = [str(x).lower() for x in raw] if isinstance(raw, list) else []
        return tuple(defaults) + tuple(x for x in custom if x not in defaults)

    @property
    def action_verbs(self) -> tuple[str, ...]:
        return self._naming_tokens(DEFAULT_ACTION_VERBS, "action_verbs")

    @property
    def outcome_tokens(self) -> tuple[str, ...]:
        return self._naming_tokens(DEFAULT_OUTCOME_TOKENS, "outcome_tokens")

    @property
    def condition_tokens(self) -> tuple[str, ...]:
        return self._naming_tokens(DEFAULT_CONDITION_TOKENS, "condition_tokens")
