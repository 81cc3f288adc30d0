"""Load [tool.testwarden] and [tool] from pyproject.toml. Infrastructure I/O only."""

import sys
from pathlib import Path

from testwarden.domain.errors import ConfigurationError

if sys.version_info >= (3, 11):
    import tomllib as toml_lib
else:
    import tomli as toml_lib


class ConfigFileLoader:
    """Loads `[tool.testwarden]` from the nearest pyproject.toml."""

    @staticmethod
    def load_config_from_fs(start: Path | None = None) -> tuple[dict[str, object], dict[str, object]]:
        """Load [tool.testwarden] and [tool] from the nearest pyproject.toml. Returns (config_dict, tool_section)."""
        current_path = (start or Path.cwd()).resolve()
        empty: dict[str, object] = {}
        for directory in (current_path, *current_path.parents):
            config_file = directory / "pyproject.toml"
            if not config_file.is_file():
                continue
            try:
                with config_file.open("rb") as f:
                    data = toml_lib.load(f)
            except OSError:
                continue
            except toml_lib.TOMLDecodeError as exc:
                raise ConfigurationError(f"{config_file}: {exc}") from exc
            tool_section = data.get("tool", {}) or {}
            config_dict = tool_section.get("testwarden", {}) or {}
            return (config_dict, tool_section)
        return (empty, empty)
