from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from reqcheck.config import (
    ReqCheckConfig,
    discover_config_file,
    load_config,
    _parse_section,
    _pyproject_has_reqcheck_section,
    _read_toml,
)
from reqcheck.constants import DEFAULT_TIMEOUT
from reqcheck.exceptions import ConfigError


@pytest.mark.unit
class TestReqCheckConfig:
    """Tests for ReqCheckConfig dataclass."""

    def test_default_initialization(self) -> None:
        """Test ReqCheckConfig initializes with correct defaults."""
        config = ReqCheckConfig()

        assert config.python is None
        assert config.ignore_packages == []
        assert config.check_installed is True
        assert config.check_imports is True
        assert config.timeout == DEFAULT_TIMEOUT
        assert config.source_path is None

    def test_to_log_dict(self) -> None:
        """Test to_log_dict returns configuration without metadata."""
        config = ReqCheckConfig(
            python="/venv/bin/python",
            ignore_packages=["yaml"],
            check_imports=False,
            timeout=5,
            source_path=Path("/test/reqcheck.toml"),
        )

        assert config.to_log_dict() == {
            "python": "/venv/bin/python",
            "ignore_packages": ["yaml"],
            "check_installed": True,
            "check_imports": False,
            "timeout": 5,
        }


@pytest.mark.unit
class TestDiscoverConfigFile:
    """Tests for discover_config_file function."""

    def test_explicit_path_priority(self, tmp_path: Path) -> None:
        """Test explicit path is used when provided and exists."""
        config_file = tmp_path / "custom.toml"
        config_file.write_text("[reqcheck]\n", encoding="utf-8")
        (tmp_path / "reqcheck.toml").write_text("[reqcheck]\n", encoding="utf-8")

        with patch("reqcheck.config.Path.cwd", return_value=tmp_path):
            result = discover_config_file(config_file)

        assert result == config_file.resolve()

    def test_explicit_path_not_found_raises_error(self, tmp_path: Path) -> None:
        """Test ConfigError raised when explicit path doesn't exist."""
        with pytest.raises(ConfigError) as exc_info:
            discover_config_file(tmp_path / "nonexistent.toml")

        assert "not found" in str(exc_info.value).lower()

    def test_discovers_reqcheck_toml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "reqcheck.toml"
        config_file.write_text("[reqcheck]\n", encoding="utf-8")

        with patch("reqcheck.config.Path.cwd", return_value=tmp_path):
            assert discover_config_file() == config_file

    def test_discovers_pyproject_toml_with_section(self, tmp_path: Path) -> None:
        config_file = tmp_path / "pyproject.toml"
        config_file.write_text("[tool.reqcheck]\ntimeout = 10\n", encoding="utf-8")

        with patch("reqcheck.config.Path.cwd", return_value=tmp_path):
            assert discover_config_file() == config_file

    def test_ignores_pyproject_toml_without_section(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text("[tool.other]\nkey = 'value'\n", encoding="utf-8")

        with patch("reqcheck.config.Path.cwd", return_value=tmp_path):
            assert discover_config_file() is None

    def test_precedence_order(self, tmp_path: Path) -> None:
        """Test discovery precedence: reqcheck.toml before pyproject.toml."""
        reqcheck_toml = tmp_path / "reqcheck.toml"
        reqcheck_toml.write_text("[reqcheck]\n", encoding="utf-8")
        (tmp_path / "pyproject.toml").write_text("[tool.reqcheck]\n", encoding="utf-8")

        with patch("reqcheck.config.Path.cwd", return_value=tmp_path):
            assert discover_config_file() == reqcheck_toml


@pytest.mark.unit
class TestPyprojectHasReqcheckSection:
    """Tests for _pyproject_has_reqcheck_section helper."""

    def test_returns_true_when_section_exists(self, tmp_path: Path) -> None:
        config_file = tmp_path / "pyproject.toml"
        config_file.write_text("[tool.reqcheck]\ncheck_imports = true\n", encoding="utf-8")

        assert _pyproject_has_reqcheck_section(config_file) is True

    def test_returns_false_on_errors(self, tmp_path: Path) -> None:
        """Test invalid TOML and missing files count as no section."""
        config_file = tmp_path / "pyproject.toml"
        config_file.write_text("invalid ][[", encoding="utf-8")

        assert _pyproject_has_reqcheck_section(config_file) is False
        assert _pyproject_has_reqcheck_section(tmp_path / "missing.toml") is False


@pytest.mark.unit
class TestReadToml:
    """Tests for _read_toml helper."""

    def test_reads_valid_toml(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "test.toml"
        toml_file.write_text("[reqcheck]\ntimeout = 3\n", encoding="utf-8")

        assert _read_toml(toml_file) == {"reqcheck": {"timeout": 3}}

    def test_raises_error_on_invalid_toml(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "invalid.toml"
        toml_file.write_text("invalid ][[ toml", encoding="utf-8")

        with pytest.raises(ConfigError, match="Invalid TOML"):
            _read_toml(toml_file)


@pytest.mark.unit
class TestParseSection:
    """Tests for _parse_section validation."""

    def test_all_options(self) -> None:
        """Test every supported option is applied."""
        config = _parse_section(
            {
                "python": ".venv/bin/python",
                "ignore_packages": ["pkg_resources", "yaml"],
                "check_installed": False,
                "check_imports": True,
                "timeout": 30,
            },
            config_path="reqcheck.toml",
        )

        assert config.python == ".venv/bin/python"
        assert config.ignore_packages == ["pkg_resources", "yaml"]
        assert config.check_installed is False
        assert config.check_imports is True
        assert config.timeout == 30

    def test_unknown_keys_rejected(self) -> None:
        with pytest.raises(ConfigError, match="Unknown configuration keys: bogus"):
            _parse_section({"bogus": 1}, config_path="reqcheck.toml")

    @pytest.mark.parametrize(
        "section,option",
        [
            ({"python": ""}, "python"),
            ({"python": 3}, "python"),
            ({"ignore_packages": "yaml"}, "ignore_packages"),
            ({"ignore_packages": ["yaml", 1]}, "ignore_packages"),
            ({"check_installed": "yes"}, "check_installed"),
            ({"check_imports": 1}, "check_imports"),
            ({"timeout": 0}, "timeout"),
            ({"timeout": "60"}, "timeout"),
            ({"timeout": True}, "timeout"),
        ],
    )
    def test_invalid_values(self, section: dict, option: str) -> None:
        """Test wrong types name the offending option."""
        with pytest.raises(ConfigError) as exc_info:
            _parse_section(section, config_path="reqcheck.toml")

        assert exc_info.value.option == option


@pytest.mark.unit
class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults_without_file(self, tmp_path: Path) -> None:
        with patch("reqcheck.config.Path.cwd", return_value=tmp_path):
            assert load_config() == ReqCheckConfig()

    def test_loads_pyproject_section(self, tmp_path: Path) -> None:
        """Test [tool.reqcheck] values are loaded and the source recorded."""
        config_file = tmp_path / "pyproject.toml"
        config_file.write_text(
            "[tool.reqcheck]\nignore_packages = ['yaml']\ntimeout = 12\n",
            encoding="utf-8",
        )

        with patch("reqcheck.config.Path.cwd", return_value=tmp_path):
            config = load_config()

        assert config.ignore_packages == ["yaml"]
        assert config.timeout == 12
        assert config.source_path == config_file

    def test_empty_section_uses_defaults(self, tmp_path: Path) -> None:
        config_file = tmp_path / "reqcheck.toml"
        config_file.write_text("# nothing yet\n", encoding="utf-8")

        config = load_config(config_file)

        assert config.check_imports is True
        assert config.source_path == config_file.resolve()
