"""Unit tests for configuration file loading.

Tests cover:
- Loading TOML, YAML, JSON and pyproject.toml files
- Discovery in parent directories
- Priority of explicit path, environment variable and discovery
- Conversion of configuration mappings into MarkdownOptions
- Error reporting for malformed and unsupported files
"""

import json

import pytest

from markweave import ConfigurationError, MarkdownOptions
from markweave.config import (
    discover_config_file,
    load_config_file,
    load_config_with_priority,
    options_from_config,
)


@pytest.mark.unit
class TestLoadConfigFile:
    """Test reading each supported format."""

    def test_toml(self, tmp_path):
        """Test a TOML file."""
        path = tmp_path / ".markweave.toml"
        path.write_text("gfm = false\nmax_nesting_depth = 16\n", encoding="utf-8")
        assert load_config_file(path) == {"gfm": False, "max_nesting_depth": 16}

    def test_yaml(self, tmp_path):
        """Test a YAML file."""
        path = tmp_path / ".markweave.yaml"
        path.write_text("breaks: true\n", encoding="utf-8")
        assert load_config_file(path) == {"breaks": True}

    def test_empty_yaml(self, tmp_path):
        """Test that an empty YAML file is an empty configuration."""
        path = tmp_path / "empty.yml"
        path.write_text("", encoding="utf-8")
        assert load_config_file(path) == {}

    def test_json(self, tmp_path):
        """Test a JSON file."""
        path = tmp_path / ".markweave.json"
        path.write_text(json.dumps({"pedantic": True}), encoding="utf-8")
        assert load_config_file(path) == {"pedantic": True}

    def test_pyproject_section(self, tmp_path):
        """Test the [tool.markweave] table of pyproject.toml."""
        path = tmp_path / "pyproject.toml"
        path.write_text('[project]\nname = "x"\n\n[tool.markweave]\nsilent = true\n', encoding="utf-8")
        assert load_config_file(path) == {"silent": True}

    def test_pyproject_without_section(self, tmp_path):
        """Test a pyproject.toml with no markweave table."""
        path = tmp_path / "pyproject.toml"
        path.write_text('[project]\nname = "x"\n', encoding="utf-8")
        assert load_config_file(path) == {}

    def test_missing_file(self, tmp_path):
        """Test that a missing file is an error."""
        with pytest.raises(ConfigurationError, match="does not exist"):
            load_config_file(tmp_path / "nope.toml")

    def test_unsupported_extension(self, tmp_path):
        """Test that unknown formats are rejected."""
        path = tmp_path / "config.ini"
        path.write_text("[x]\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Unsupported config file format"):
            load_config_file(path)

    def test_malformed_toml(self, tmp_path):
        """Test that parse errors are wrapped."""
        path = tmp_path / "bad.toml"
        path.write_text("gfm = = true\n", encoding="utf-8")
        with pytest.raises(ConfigurationError) as exc_info:
            load_config_file(path)
        assert exc_info.value.original_error is not None

    def test_top_level_must_be_mapping(self, tmp_path):
        """Test that a list at the top level is rejected."""
        path = tmp_path / "list.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config_file(path)


@pytest.mark.unit
class TestDiscovery:
    """Test configuration discovery."""

    def test_found_in_parent(self, tmp_path):
        """Test that parent directories are searched."""
        config = tmp_path / ".markweave.toml"
        config.write_text("breaks = true\n", encoding="utf-8")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert discover_config_file(nested) == config.resolve()

    def test_dedicated_file_wins_over_pyproject(self, tmp_path):
        """Test the lookup order within one directory."""
        (tmp_path / "pyproject.toml").write_text("[tool.markweave]\ngfm = false\n", encoding="utf-8")
        (tmp_path / ".markweave.json").write_text("{}", encoding="utf-8")
        assert discover_config_file(tmp_path).name == ".markweave.json"

    def test_pyproject_without_section_skipped(self, tmp_path):
        """Test that a pyproject.toml without the table is not a hit."""
        (tmp_path / "pyproject.toml").write_text('[project]\nname = "x"\n', encoding="utf-8")
        found = discover_config_file(tmp_path)
        assert found is None or found.parent != tmp_path.resolve()


@pytest.mark.unit
class TestPriority:
    """Test load_config_with_priority."""

    def test_explicit_path_wins(self, tmp_path, monkeypatch):
        """Test that an explicit path beats the environment."""
        explicit = tmp_path / "explicit.json"
        explicit.write_text('{"breaks": true}', encoding="utf-8")
        env = tmp_path / "env.json"
        env.write_text('{"pedantic": true}', encoding="utf-8")
        monkeypatch.setenv("MARKWEAVE_CONFIG", str(env))
        assert load_config_with_priority(str(explicit)) == {"breaks": True}

    def test_environment_variable(self, tmp_path, monkeypatch):
        """Test the MARKWEAVE_CONFIG environment variable."""
        env = tmp_path / "env.yaml"
        env.write_text("pedantic: true\n", encoding="utf-8")
        monkeypatch.setenv("MARKWEAVE_CONFIG", str(env))
        assert load_config_with_priority() == {"pedantic": True}

    def test_discovery_from_cwd(self, tmp_path, monkeypatch):
        """Test falling back to discovery from the working directory."""
        (tmp_path / ".markweave.toml").write_text("silent = true\n", encoding="utf-8")
        monkeypatch.delenv("MARKWEAVE_CONFIG", raising=False)
        monkeypatch.chdir(tmp_path)
        assert load_config_with_priority() == {"silent": True}


@pytest.mark.unit
class TestOptionsFromConfig:
    """Test building options from configuration values."""

    def test_values_applied(self):
        """Test that known keys update the options."""
        options = options_from_config({"gfm": False, "max_nesting_depth": 8})
        assert options.gfm is False
        assert options.max_nesting_depth == 8

    def test_empty_returns_base(self):
        """Test that an empty mapping returns the base options."""
        base = MarkdownOptions(breaks=True)
        assert options_from_config({}, base) is base

    def test_unknown_key(self):
        """Test that unknown keys are reported."""
        with pytest.raises(ConfigurationError, match="smartypants") as exc_info:
            options_from_config({"smartypants": True})
        assert exc_info.value.parameter_name == "smartypants"

    def test_class_options_not_allowed(self):
        """Test that class-valued options cannot come from a file."""
        with pytest.raises(ConfigurationError):
            options_from_config({"renderer_class": "my.Renderer"})

    def test_wrong_value_type(self):
        """Test that option validation applies."""
        with pytest.raises(ConfigurationError):
            options_from_config({"gfm": "yes"})
