"""Tests for cascade_release.deps."""

from __future__ import annotations

from cascade_release.deps import admit_version, dep_canonical_name, dep_specifier


class TestDepCanonicalName:
    def test_simple_name(self) -> None:
        assert dep_canonical_name("requests") == "requests"

    def test_with_version_bound(self) -> None:
        assert dep_canonical_name("requests>=2.0,<3.0") == "requests"

    def test_with_extras(self) -> None:
        assert dep_canonical_name("requests[security]>=2.0") == "requests"

    def test_normalizes_underscores(self) -> None:
        assert dep_canonical_name("my_package>=1.0") == "my-package"

    def test_normalizes_case(self) -> None:
        assert dep_canonical_name("MyPackage>=1.0") == "mypackage"


class TestDepSpecifier:
    def test_with_specifier(self) -> None:
        assert dep_specifier("pkg==1.0.0") == "==1.0.0"

    def test_without_specifier(self) -> None:
        assert dep_specifier("pkg") == ""


class TestAdmitVersion:
    def test_already_admitted_is_untouched(self) -> None:
        assert admit_version("pkg >= 1.0", "1.0.1") == "pkg >= 1.0"

    def test_no_specifier_is_untouched(self) -> None:
        assert admit_version("pkg", "3.0.0") == "pkg"

    def test_url_is_untouched(self) -> None:
        dep = "pkg @ file:///src/pkg"
        assert admit_version(dep, "3.0.0") == dep

    def test_exact_pin_moves(self) -> None:
        assert admit_version("pkg==1.0.0", "1.0.1") == "pkg==1.0.1"

    def test_compatible_release_moves(self) -> None:
        assert admit_version("pkg~=1.0.0", "1.1.0") == "pkg~=1.1.0"

    def test_upper_bound_is_widened(self) -> None:
        assert admit_version("pkg>=1.0,<2", "2.0.0") == "pkg>=2.0.0,<3.0.0"

    def test_preserves_extras_sorted(self) -> None:
        assert admit_version("pkg[z,a]==1.0.0", "2.0.0") == "pkg[a,z]==2.0.0"

    def test_preserves_marker(self) -> None:
        result = admit_version('pkg==1.0.0; python_version >= "3.10"', "1.0.1")
        assert result == 'pkg==1.0.1; python_version >= "3.10"'

    def test_result_admits_version(self) -> None:
        # A second pass over the rewritten string is a no-op
        once = admit_version("pkg<1.0", "1.0.0")
        assert admit_version(once, "1.0.0") == once
