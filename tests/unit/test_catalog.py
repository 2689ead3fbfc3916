"""Tests for the build target catalog."""

import logging

import pytest

from cipherbuild.catalog import (
    TARGETS,
    ToolchainFamily,
    get_target,
    is_ios,
    select_targets,
    supported_on,
    targets_for_host,
)
from cipherbuild.errors import InvalidConfigurationError
from cipherbuild.host import HostOs


class TestCatalog:
    """Tests for catalog lookups."""

    def test_catalog_ids(self):
        """Test that the catalog holds exactly the ten targets."""
        assert list(TARGETS) == [
            "vStudio64",
            "mingwX64",
            "linuxX64",
            "linuxArm64",
            "androidArm64",
            "androidX64",
            "iosX64",
            "iosArm64",
            "macosX64",
            "macosArm64",
        ]

    def test_get_target(self):
        """Test lookup by id."""
        target = get_target("androidArm64")
        assert target.family is ToolchainFamily.ANDROID
        assert target.arch == "arm64"

    def test_get_unknown_target_raises(self):
        """Test that unknown ids name the available targets."""
        with pytest.raises(InvalidConfigurationError, match="linuxX64"):
            get_target("linuxX86")

    def test_targets_are_immutable(self):
        """Test that descriptors cannot be changed."""
        target = get_target("linuxX64")
        with pytest.raises(AttributeError):
            target.arch = "arm64"

    @pytest.mark.parametrize(
        "host,expected",
        [
            (HostOs.LINUX, ["linuxX64", "linuxArm64", "androidArm64", "androidX64"]),
            (HostOs.WINDOWS, ["vStudio64", "mingwX64", "androidArm64", "androidX64"]),
            (
                HostOs.MAC,
                ["androidArm64", "androidX64", "iosX64", "iosArm64", "macosX64", "macosArm64"],
            ),
        ],
    )
    def test_targets_for_host(self, host, expected):
        """Test host compatibility of every target."""
        assert [t.id for t in targets_for_host(host)] == expected

    def test_android_builds_everywhere(self):
        """Test that the NDK targets are supported on every host."""
        for host in HostOs:
            assert supported_on(get_target("androidX64"), host)

    def test_is_ios(self):
        """Test iOS detection within the Apple family."""
        assert is_ios(get_target("iosArm64"))
        assert is_ios(get_target("iosX64"))
        assert not is_ios(get_target("macosArm64"))
        assert not is_ios(get_target("linuxArm64"))


class TestSelectTargets:
    """Tests for select_targets()."""

    def test_unsupported_targets_are_logged_and_dropped(self, caplog):
        """Test that a shared target list works on every host."""
        with caplog.at_level(logging.INFO):
            selected = select_targets(["vStudio64", "linuxX64", "iosArm64"], HostOs.LINUX)

        assert [t.id for t in selected] == ["linuxX64"]
        assert "Ignoring target vStudio64 on host OS Linux" in caplog.text
        assert "Ignoring target iosArm64 on host OS Linux" in caplog.text

    def test_keeps_selection_order_without_duplicates(self):
        """Test order and deduplication."""
        selected = select_targets(
            ["androidX64", "linuxX64", "androidX64"], HostOs.LINUX
        )
        assert [t.id for t in selected] == ["androidX64", "linuxX64"]

    def test_unknown_id_raises(self):
        """Test that typos are configuration errors, not ignored targets."""
        with pytest.raises(InvalidConfigurationError):
            select_targets(["linuxX64", "bogus"], HostOs.LINUX)
