"""Unit tests for reqcheck.models.requirement module.

Test Coverage:
- Requirement initialization and validation
- Normalized keys
- String rendering with extras, specs and markers
- Equality and hashing (line numbers ignored)
- Constraint comparison independent of clause order
"""

from __future__ import annotations

import pytest

from reqcheck.models.requirement import Requirement


@pytest.mark.unit
class TestRequirementInit:
    """Tests for Requirement initialization."""

    def test_minimal_initialization(self) -> None:
        """Test Requirement with only a package name."""
        req = Requirement(name="requests")

        assert req.name == "requests"
        assert req.specs == ()
        assert req.extras == frozenset()
        assert req.markers is None
        assert req.line_number == 0

    def test_lists_are_coerced(self) -> None:
        """Test list arguments are stored as immutable collections."""
        req = Requirement("flask", specs=[[">=", "1.0"]], extras=["async"])

        assert req.specs == ((">=", "1.0"),)
        assert req.extras == frozenset({"async"})
        hash(req)

    @pytest.mark.parametrize("name", ["", "   "])
    def test_empty_name_rejected(self, name: str) -> None:
        """Test an empty name is never a valid requirement."""
        with pytest.raises(ValueError):
            Requirement(name)

    def test_frozen(self) -> None:
        req = Requirement("flask")

        with pytest.raises(AttributeError):
            req.name = "django"  # type: ignore[misc]


@pytest.mark.unit
class TestRequirementKey:
    """Tests for the normalized key."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("Flask", "flask"),
            ("zope.interface", "zope-interface"),
            ("typing_extensions", "typing-extensions"),
        ],
    )
    def test_key(self, name: str, expected: str) -> None:
        assert Requirement(name).key == expected


@pytest.mark.unit
class TestRequirementToString:
    """Tests for rendering."""

    def test_name_only(self) -> None:
        assert str(Requirement("requests")) == "requests"

    def test_specs_and_sorted_extras(self) -> None:
        """Test extras are sorted and clauses keep their order."""
        req = Requirement(
            "requests",
            specs=((">=", "2.0"), ("<", "3")),
            extras=frozenset({"socks", "security"}),
        )

        assert str(req) == "requests[security,socks]>=2.0,<3"

    def test_markers(self) -> None:
        """Test markers are appended and can be left out."""
        req = Requirement("tomli", ((">=", "2.0"),), markers='python_version < "3.11"')

        assert str(req) == 'tomli>=2.0 ; python_version < "3.11"'
        assert req.to_string(include_markers=False) == "tomli>=2.0"


@pytest.mark.unit
class TestRequirementEquality:
    """Tests for equality semantics."""

    def test_line_number_ignored(self) -> None:
        """Test the same declaration on different lines compares equal."""
        assert Requirement("flask", line_number=1) == Requirement("flask", line_number=7)

    def test_specs_matter(self) -> None:
        assert Requirement("flask", ((">=", "1"),)) != Requirement("flask")

    def test_same_constraints_ignores_order_and_case(self) -> None:
        """Test same_constraints compares clause sets on normalized names."""
        left = Requirement("Flask", ((">=", "1.0"), ("<", "2.0")))
        right = Requirement("flask", (("<", "2.0"), (">=", "1.0")))

        assert left.same_constraints(right)
        assert not left.same_constraints(Requirement("flask", ((">=", "1.0"),)))
