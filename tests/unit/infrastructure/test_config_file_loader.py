"""Unit tests for ConfigFileLoader."""

from pathlib import Path

import pytest

from testwarden.domain.errors import ConfigurationError
from testwarden.infrastructure.config_file_loader import ConfigFileLoader


def test_loads_testwarden_section_from_nearest_pyproject(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text(
        '[tool.testwarden]\nfail_on = "warn"\n\n[tool.other]\nkey = 1\n', encoding="utf-8")
    nested = tmp_path / "tests" / "unit"
    nested.mkdir(parents=True)

    config, tool = ConfigFileLoader.load_config_from_fs(nested)

    assert config == {"fail_on": "warn"}
    assert tool["other"] == {"key": 1}


def test_missing_section_returns_empty_config(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text('[project]\nname = "demo"\n', encoding="utf-8")
    config, tool = ConfigFileLoader.load_config_from_fs(tmp_path)
    assert config == {}
    assert tool == {}


def test_malformed_toml_raises_configuration_error(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text("[tool.testwarden\nfail_on = ", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="pyproject.toml"):
        ConfigFileLoader.load_config_from_fs(tmp_path)
