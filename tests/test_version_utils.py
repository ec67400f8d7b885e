"""Tests for version comparison and latest-version selection"""

import pytest

from vpm_tool.models.repository import Package, PackageVersion
from vpm_tool.utils.version_utils import (
    base_version,
    compare_base_versions,
    compare_versions,
    get_latest_newer_version,
    get_latest_version,
    is_stable,
    sort_versions,
)


def make_package(*versions: str) -> Package:
    package = Package(id="com.example.tool")
    for version in versions:
        package.add_version(version, PackageVersion(version=version, name=package.id))
    return package


class TestCompareVersions:
    """Component-wise numeric comparison"""

    @pytest.mark.parametrize("left, right, expected", [
        ("1.2.3", "1.2.3", 0),
        ("1.10.0", "1.9.0", 1),
        ("1.2", "1.2.0", 0),
        ("1.2.0.1", "1.2", 1),
        ("0.9", "1.0", -1),
    ])
    def test_numeric_ordering(self, left, right, expected):
        assert compare_versions(left, right) == expected

    def test_unparsable_sorts_below_parsable(self):
        assert compare_versions("latest", "0.0.1") == -1
        assert compare_versions("0.0.1", "1.0.x") == 1

    def test_two_unparsable_compare_as_strings(self):
        assert compare_versions("abc", "abd") == -1
        assert compare_versions("same", "same") == 0

    def test_base_version_strips_suffix(self):
        assert base_version("1.2.3-beta.1") == "1.2.3"
        assert base_version("1.2.3") == "1.2.3"
        assert compare_base_versions("1.2.3-rc.1", "1.2.3") == 0


class TestIsStable:
    """Stability classification"""

    @pytest.mark.parametrize("version", ["1.0.0", "2.10", "3"])
    def test_stable(self, version):
        assert is_stable(version)

    @pytest.mark.parametrize("version", ["1.0.0-beta", "1.0.0-rc.1", "1.0.0beta", "1.0.0.dev", "", "1.x"])
    def test_unstable(self, version):
        assert not is_stable(version)


class TestLatestVersion:
    """Latest version selection"""

    def test_stable_only_by_default_filter(self):
        package = make_package("1.0.0", "1.1.0", "1.2.0-beta.1")
        assert get_latest_version(package, include_unstable=False).version == "1.1.0"

    def test_prerelease_of_higher_base_wins_when_unstable_allowed(self):
        package = make_package("1.0.0", "1.1.0", "1.2.0-beta.1")
        assert get_latest_version(package, include_unstable=True).version == "1.2.0-beta.1"

    def test_stable_beats_its_own_prerelease(self):
        package = make_package("2.0.0-rc.1", "2.0.0")
        assert get_latest_version(package, include_unstable=True).version == "2.0.0"

    def test_no_stable_versions(self):
        package = make_package("1.0.0-alpha")
        assert get_latest_version(package, include_unstable=False) is None

    def test_empty_package(self):
        assert get_latest_version(Package(id="empty")) is None

    def test_sort_versions_descending(self):
        assert sort_versions(["1.0.0", "1.10.0", "1.2.0-beta", "1.2.0"]) == \
            ["1.10.0", "1.2.0", "1.2.0-beta", "1.0.0"]


class TestLatestNewerVersion:
    """Update detection compares base versions"""

    def test_newer_version_found(self):
        package = make_package("1.0.0", "1.1.0", "1.2.0")
        assert get_latest_newer_version(package, "1.0.0", include_unstable=False).version == "1.2.0"

    def test_same_base_is_not_an_update(self):
        package = make_package("1.0.0", "1.0.0-beta.2")
        assert get_latest_newer_version(package, "1.0.0-beta.1", include_unstable=True) is None

    def test_up_to_date(self):
        package = make_package("1.0.0")
        assert get_latest_newer_version(package, "1.0.0") is None

    def test_empty_current_version(self):
        package = make_package("1.0.0")
        assert get_latest_newer_version(package, "") is None

    def test_prerelease_ignored_when_stable_only(self):
        package = make_package("1.0.0", "2.0.0-beta")
        assert get_latest_newer_version(package, "1.0.0", include_unstable=False) is None
        assert get_latest_newer_version(package, "1.0.0", include_unstable=True).version == "2.0.0-beta"
