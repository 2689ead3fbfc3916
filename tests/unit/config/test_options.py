"""Tests for compiler option sets."""

import pytest

from cipherbuild.config import defaults
from cipherbuild.config.options import CompilerOptionSet, options_string
from cipherbuild.errors import InvalidConfigurationError


class TestMerged:
    """Tests for CompilerOptionSet.merged()."""

    def test_base_then_overrides_in_order(self):
        """Test that overrides follow the base list without reordering."""
        options = CompilerOptionSet(
            base=["-DA", "-DB"],
            overrides={"androidArm64": ["-DC", "-DA"]},
            required=[],
        )
        assert options.merged("androidArm64") == ["-DA", "-DB", "-DC", "-DA"]

    def test_target_without_overrides(self):
        """Test that other targets only get the base list."""
        options = CompilerOptionSet(base=["-DA"], overrides={"iosArm64": ["-DX"]}, required=[])
        assert options.merged("linuxX64") == ["-DA"]

    def test_merged_is_a_copy(self):
        """Test that callers cannot mutate the stored lists."""
        options = CompilerOptionSet(base=["-DA"], required=[])
        options.merged("linuxX64").append("-DZ")
        assert options.base == ["-DA"]

    def test_defaults_contain_required(self):
        """Test that the default base list passes validation."""
        CompilerOptionSet().validate()
        for option in defaults.REQUIRED_OPTIONS:
            assert option in CompilerOptionSet().base


class TestValidate:
    """Tests for CompilerOptionSet.validate()."""

    def test_forced_option_in_base_rejected(self):
        """Test that the build tool's own settings cannot be supplied."""
        options = CompilerOptionSet(base=["-DA", "-DB"], forced=["-DA"], required=[])
        with pytest.raises(InvalidConfigurationError, match="-DA"):
            options.validate()

    def test_forced_option_in_override_rejected(self):
        """Test that overrides are checked too, naming the target."""
        options = CompilerOptionSet(
            base=["-DB"], overrides={"linuxX64": ["-DA"]}, forced=["-DA"], required=[]
        )
        with pytest.raises(InvalidConfigurationError, match="linuxX64"):
            options.validate()

    def test_missing_required_option_rejected(self):
        """Test that required options must be in the base list."""
        options = CompilerOptionSet(base=["-DA"], forced=[], required=["-DB"])
        with pytest.raises(InvalidConfigurationError, match="-DB"):
            options.validate()

    def test_forced_matching_is_exact(self):
        """Test that a forced name does not reject options merely containing it."""
        options = CompilerOptionSet(
            base=list(defaults.REQUIRED_OPTIONS),
            overrides={"iosArm64": ["-DSQLITE_THREADSAFE=2"]},
        )
        options.validate()

    def test_unknown_override_target_rejected(self):
        """Test that overrides for unknown targets are caught."""
        options = CompilerOptionSet(
            base=list(defaults.REQUIRED_OPTIONS), overrides={"linuxX86": ["-DA"]}
        )
        with pytest.raises(InvalidConfigurationError, match="linuxX86"):
            options.validate()

    def test_valid_set_passes(self):
        """Test the happy path."""
        CompilerOptionSet(base=["-DB", "-DC"], forced=["-DA"], required=["-DB"]).validate()


def test_options_string():
    """Test joining options into a command-line fragment."""
    assert options_string(["-DA", "-DB=1"]) == "-DA -DB=1"
    assert options_string([]) == ""
