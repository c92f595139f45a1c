"""Property-based tests for version constraints.

Verifies:
- Bound laws: >=, >, <, <= agree with compare.
- Caret and tilde never admit versions below their bound and keep the
  locked prefix.
- Range: inclusive at both ends.
- Compatibility is symmetric and never reports a false conflict: if any
  version satisfies both constraints they are compatible.
- Parsing the formatted constraint yields the same constraint.
"""
from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from deplock.core.dependency import (
    SemanticVersion,
    VersionConstraint,
    compare,
    constraints_compatible,
)

small = st.integers(min_value=0, max_value=3)
versions = st.builds(SemanticVersion, small, small, small)


@st.composite
def constraints(draw: st.DrawFn) -> VersionConstraint:
    op = draw(st.sampled_from(["", "=", ">", ">=", "<", "<=", "^", "~", "range", "wild", "*"]))
    if op == "*":
        return VersionConstraint.any()
    if op == "wild":
        return VersionConstraint.wildcard(draw(small), draw(st.one_of(st.none(), small)))
    if op == "range":
        low, high = sorted([draw(versions), draw(versions)])
        return VersionConstraint.range(low, high)
    return VersionConstraint.parse(f"{op}{draw(versions)}")


class TestBoundLaws:
    @given(versions, versions)
    def test_gte(self, v: SemanticVersion, bound: SemanticVersion) -> None:
        assert VersionConstraint.parse(f">={bound}").satisfies(v) == (compare(v, bound) >= 0)

    @given(versions, versions)
    def test_gt_and_lte_complement(self, v: SemanticVersion, bound: SemanticVersion) -> None:
        gt = VersionConstraint.parse(f">{bound}").satisfies(v)
        lte = VersionConstraint.parse(f"<={bound}").satisfies(v)
        assert gt != lte

    @given(versions, versions)
    def test_lt(self, v: SemanticVersion, bound: SemanticVersion) -> None:
        assert VersionConstraint.parse(f"<{bound}").satisfies(v) == (compare(v, bound) < 0)


class TestCaretTilde:
    @given(versions, versions)
    def test_caret_never_below_bound(self, v: SemanticVersion, bound: SemanticVersion) -> None:
        if VersionConstraint.parse(f"^{bound}").satisfies(v):
            assert v >= bound
            if bound.major > 0:
                assert v.major == bound.major

    @given(versions, versions)
    def test_tilde_locks_minor(self, v: SemanticVersion, bound: SemanticVersion) -> None:
        if VersionConstraint.parse(f"~{bound}").satisfies(v):
            assert v >= bound
            assert (v.major, v.minor) == (bound.major, bound.minor)

    @given(versions)
    def test_bound_satisfies_own_caret_and_tilde(self, bound: SemanticVersion) -> None:
        assert VersionConstraint.caret(bound).satisfies(bound)
        assert VersionConstraint.tilde(bound).satisfies(bound)


class TestRange:
    @given(versions, versions, versions)
    def test_inclusive(self, a: SemanticVersion, b: SemanticVersion, v: SemanticVersion) -> None:
        low, high = sorted([a, b])
        expected = compare(v, low) >= 0 and compare(v, high) <= 0
        assert VersionConstraint.range(low, high).satisfies(v) == expected


class TestCompatibility:
    @given(constraints(), constraints())
    def test_symmetric(self, a: VersionConstraint, b: VersionConstraint) -> None:
        assert constraints_compatible(a, b) == constraints_compatible(b, a)

    @given(constraints(), constraints(), versions)
    def test_no_false_conflicts(
        self, a: VersionConstraint, b: VersionConstraint, witness: SemanticVersion
    ) -> None:
        """A version satisfying both constraints proves them compatible."""
        if a.satisfies(witness) and b.satisfies(witness):
            assert constraints_compatible(a, b)

    @given(constraints())
    def test_format_parse(self, c: VersionConstraint) -> None:
        assert VersionConstraint.parse(str(c)) == c
