"""Unit tests for MarkdownOptions.

Tests cover:
- Default values
- Validation of flag types, nesting depth and class options
- create_updated returning new frozen instances
- Dialect selection from gfm, pedantic and breaks
- Module-level option accessors
"""

from dataclasses import FrozenInstanceError

import pytest

import markweave
from markweave import ConfigurationError, MarkdownOptions, Renderer
from markweave.options import ExtensionTable, option_names


@pytest.mark.unit
class TestDefaults:
    """Test default option values."""

    def test_defaults(self):
        """Test the built-in defaults."""
        options = MarkdownOptions()
        assert options.gfm is True
        assert options.pedantic is False
        assert options.breaks is False
        assert options.silent is False
        assert options.async_mode is False
        assert options.max_nesting_depth == 128
        assert options.renderer_class is None
        assert options.extensions.is_empty

    def test_frozen(self):
        """Test that options cannot be mutated in place."""
        options = MarkdownOptions()
        with pytest.raises(FrozenInstanceError):
            options.gfm = False  # type: ignore[misc]

    def test_option_names_exclude_extensions(self):
        """Test the list of plain option names."""
        names = option_names()
        assert "gfm" in names
        assert "max_nesting_depth" in names
        assert "extensions" not in names


@pytest.mark.unit
class TestValidation:
    """Test option validation."""

    @pytest.mark.parametrize("name", ["gfm", "pedantic", "breaks", "silent", "async_mode"])
    def test_flags_must_be_bool(self, name):
        """Test that boolean options reject other types."""
        with pytest.raises(ConfigurationError) as exc_info:
            MarkdownOptions(**{name: "yes"})
        assert exc_info.value.parameter_name == name

    @pytest.mark.parametrize("depth", [0, -1, 1.5, True])
    def test_depth_must_be_positive_int(self, depth):
        """Test that the nesting depth must be a positive integer."""
        with pytest.raises(ConfigurationError):
            MarkdownOptions(max_nesting_depth=depth)

    def test_renderer_class_must_subclass_renderer(self):
        """Test that class options are checked against their base class."""
        with pytest.raises(ConfigurationError):
            MarkdownOptions(renderer_class=dict)

    def test_renderer_subclass_accepted(self):
        """Test that a renderer subclass is accepted."""

        class Custom(Renderer):
            pass

        assert MarkdownOptions(renderer_class=Custom).renderer_class is Custom

    def test_extensions_must_be_table(self):
        """Test that extensions must be an ExtensionTable."""
        with pytest.raises(ConfigurationError):
            MarkdownOptions(extensions={})  # type: ignore[arg-type]


@pytest.mark.unit
class TestCreateUpdated:
    """Test cloning with changes."""

    def test_returns_new_instance(self):
        """Test that the original is left unchanged."""
        options = MarkdownOptions()
        updated = options.create_updated(breaks=True)
        assert updated.breaks is True
        assert options.breaks is False
        assert updated is not options

    def test_unknown_field(self):
        """Test that unknown option names are rejected."""
        with pytest.raises(ConfigurationError) as exc_info:
            MarkdownOptions().create_updated(smartypants=True)
        assert exc_info.value.parameter_name == "smartypants"

    def test_validation_applies(self):
        """Test that updated values are validated."""
        with pytest.raises(ConfigurationError):
            MarkdownOptions().create_updated(max_nesting_depth=0)


@pytest.mark.unit
class TestDialects:
    """Test rule table selection."""

    @pytest.mark.parametrize(
        "changes,block,inline",
        [
            ({}, "gfm", "gfm"),
            ({"breaks": True}, "gfm", "breaks"),
            ({"gfm": False}, "normal", "normal"),
            ({"gfm": False, "breaks": True}, "normal", "normal"),
            ({"pedantic": True}, "pedantic", "pedantic"),
            ({"pedantic": True, "gfm": False}, "pedantic", "pedantic"),
        ],
    )
    def test_dialects(self, changes, block, inline):
        """Test that pedantic wins over gfm and breaks needs gfm."""
        options = MarkdownOptions(**changes)
        assert options.block_dialect == block
        assert options.inline_dialect == inline


@pytest.mark.unit
class TestModuleAccessors:
    """Test the module-level option functions."""

    def test_set_options_and_reset(self):
        """Test that set_options changes the default instance until reset."""
        markweave.set_options(breaks=True)
        assert markweave.get_options().breaks is True
        assert markweave.parse("a\nb") == "<p>a<br>b</p>\n"
        markweave.reset_defaults()
        assert markweave.get_options().breaks is False
        assert markweave.parse("a\nb") == "<p>a\nb</p>\n"

    def test_get_defaults_is_fresh(self):
        """Test that get_defaults ignores changes to the default instance."""
        markweave.set_options(gfm=False)
        assert markweave.get_defaults() == MarkdownOptions()

    def test_per_call_options_do_not_stick(self):
        """Test that options passed to parse apply to that call only."""
        assert markweave.parse("a\nb", {"breaks": True}) == "<p>a<br>b</p>\n"
        assert markweave.parse("a\nb") == "<p>a\nb</p>\n"

    def test_keyword_overrides(self):
        """Test per-call keyword overrides."""
        assert markweave.parse("~~x~~", gfm=False) == "<p>~~x~~</p>\n"
        assert markweave.parse("~~x~~") == "<p><del>x</del></p>\n"

    def test_empty_extension_tables_compare_equal(self):
        """Test that the empty extension table compares equal."""
        assert ExtensionTable() == ExtensionTable()
