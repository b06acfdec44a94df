import pytest

from pkginstall.modules.version import compare_versions, version_satisfies


@pytest.mark.parametrize("a,b,expected", [
    ("0.0.3", "0.0.2", 1),
    ("0.0.1", "0.0.2", -1),
    ("0.0.10", "0.0.9", 1),
    ("1.0", "1.0.0", 0),
    ("v2.1", "2.1", 0),
    ("1.0rc1", "1.0rc2", -1),
    ("1.0.1", "1.0.a", 1),
    (None, "1.0", -1),
])
def test_compare_versions(a, b, expected):
    assert compare_versions(a, b) == expected


@pytest.mark.parametrize("version,constraint,ok", [
    ("3.11.4", ">= 3.8", True),
    ("3.7.1", ">= 3.8", False),
    ("1.4.6", "= 1.4.6", True),
    ("1.4.6", "1.4.6", True),
    ("1.5.0", "^1.2", True),
    ("2.0.0", "^1.2", False),
    ("1.2.9", "~1.2", True),
    ("1.3.0", "~1.2", False),
    ("2.5", ">= 2, < 3", True),
    ("3.0", ">= 2, < 3", False),
    ("1.0", None, True),
])
def test_version_satisfies(version, constraint, ok):
    assert version_satisfies(version, constraint) is ok


@pytest.mark.parametrize("version,constraint,ok", [
    ("3.11.4", "^v3", True),
    ("4.0", "^v3", False),
    ("1.2.5", "~v1.2", True),
    ("1.2.5", "~1.2-rc1", True),
])
def test_version_satisfies_range_bounds(version, constraint, ok):
    assert version_satisfies(version, constraint) is ok


@pytest.mark.parametrize("constraint", ["^v", "~1.x", "^x.1"])
def test_version_satisfies_rejects_non_numeric_bound(constraint):
    with pytest.raises(ValueError, match="invalid version constraint"):
        version_satisfies("1.0", constraint)
