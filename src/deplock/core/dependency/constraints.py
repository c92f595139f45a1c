"""Version constraints: parsing, satisfaction, and pairwise compatibility.

A ``VersionConstraint`` is a closed tagged variant over ``ConstraintKind``:

- Any: ``*``
- Exact: ``1.2.3``, ``=1.2.3``, ``==1.2.3``
- Bounds: ``>1.2.3``, ``>=1.2.3``, ``<1.2.3``, ``<=1.2.3``
- Caret: ``^1.2.3`` (compatible with; locks the first non-zero component)
- Tilde: ``~1.2.3`` (patch-level changes only)
- Range: ``1.2.3...2.0.0`` (inclusive on both ends)
- Wildcard: ``1.*``, ``1.2.*`` (``x`` and ``X`` are accepted for ``*``)

Constraint semantics follow npm/Cargo conventions.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from deplock.core.dependency.semver import SemanticVersion, compare
from deplock.exceptions import VersionParseError


class ConstraintKind(Enum):
    """Discriminator for the ``VersionConstraint`` variants."""

    ANY = "any"
    EXACT = "exact"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    CARET = "caret"
    TILDE = "tilde"
    RANGE = "range"
    WILDCARD = "wildcard"


_WILDCARD_RE = re.compile(r"^(?P<major>0|[1-9]\d*)\.(?:(?P<minor>0|[1-9]\d*)\.)?[*xX]$")

# Longest operators first so ">=" is not read as ">".
_PREFIX_OPS: tuple[tuple[str, ConstraintKind], ...] = (
    ("==", ConstraintKind.EXACT),
    (">=", ConstraintKind.GTE),
    ("<=", ConstraintKind.LTE),
    ("^", ConstraintKind.CARET),
    ("~", ConstraintKind.TILDE),
    ("=", ConstraintKind.EXACT),
    (">", ConstraintKind.GT),
    ("<", ConstraintKind.LT),
)

_OP_TEXT: dict[ConstraintKind, str] = {
    ConstraintKind.EXACT: "=",
    ConstraintKind.GT: ">",
    ConstraintKind.GTE: ">=",
    ConstraintKind.LT: "<",
    ConstraintKind.LTE: "<=",
    ConstraintKind.CARET: "^",
    ConstraintKind.TILDE: "~",
}

_BOUND_KINDS = frozenset({
    ConstraintKind.GT,
    ConstraintKind.GTE,
    ConstraintKind.LT,
    ConstraintKind.LTE,
    ConstraintKind.RANGE,
})


@dataclass(frozen=True)
class VersionConstraint:
    """A predicate over semantic versions.

    Only the fields relevant to ``kind`` are set:

    Attributes:
        kind: Which variant this constraint is.
        version: The bound for EXACT, GT, GTE, LT, LTE, CARET, TILDE, and
            the lower end for RANGE.
        maximum: The upper end for RANGE.
        major: The major number for WILDCARD.
        minor: The optional minor number for WILDCARD.
    """

    kind: ConstraintKind
    version: SemanticVersion | None = None
    maximum: SemanticVersion | None = None
    major: int | None = None
    minor: int | None = None

    # -- Constructors -------------------------------------------------------

    @classmethod
    def any(cls) -> VersionConstraint:
        return cls(ConstraintKind.ANY)

    @classmethod
    def exact(cls, version: SemanticVersion) -> VersionConstraint:
        return cls(ConstraintKind.EXACT, version=version)

    @classmethod
    def caret(cls, version: SemanticVersion) -> VersionConstraint:
        return cls(ConstraintKind.CARET, version=version)

    @classmethod
    def tilde(cls, version: SemanticVersion) -> VersionConstraint:
        return cls(ConstraintKind.TILDE, version=version)

    @classmethod
    def range(cls, minimum: SemanticVersion, maximum: SemanticVersion) -> VersionConstraint:
        return cls(ConstraintKind.RANGE, version=minimum, maximum=maximum)

    @classmethod
    def wildcard(cls, major: int, minor: int | None = None) -> VersionConstraint:
        return cls(ConstraintKind.WILDCARD, major=major, minor=minor)

    @classmethod
    def parse(cls, text: str) -> VersionConstraint:
        """Parse a constraint string.

        Args:
            text: Constraint text, e.g. ``^1.2.3`` or ``1.0.0...2.0.0``.

        Returns:
            The parsed ``VersionConstraint``.

        Raises:
            VersionParseError: If the text is not a recognised constraint or
                contains a malformed version.
        """
        trimmed = text.strip()
        if not trimmed:
            raise VersionParseError("Empty version constraint", text)

        if trimmed == "*":
            return cls.any()

        if "..." in trimmed:
            low, _, high = trimmed.partition("...")
            return cls.range(SemanticVersion.parse(low), SemanticVersion.parse(high))

        for op, kind in _PREFIX_OPS:
            if trimmed.startswith(op):
                return cls(kind, version=SemanticVersion.parse(trimmed[len(op):]))

        m = _WILDCARD_RE.match(trimmed)
        if m:
            minor = m.group("minor")
            return cls.wildcard(int(m.group("major")), int(minor) if minor is not None else None)

        return cls.exact(SemanticVersion.parse(trimmed))

    # -- Evaluation ---------------------------------------------------------

    def satisfies(self, version: SemanticVersion | str) -> bool:
        """Check whether a version satisfies this constraint.

        Args:
            version: A ``SemanticVersion`` or a version string.

        Returns:
            True if the version is accepted by this constraint.

        Raises:
            VersionParseError: If *version* is a malformed string.
        """
        if isinstance(version, str):
            version = SemanticVersion.parse(version)

        kind = self.kind
        if kind is ConstraintKind.ANY:
            return True
        if kind is ConstraintKind.WILDCARD:
            if version.major != self.major:
                return False
            return self.minor is None or version.minor == self.minor

        bound = self.version
        assert bound is not None
        order = compare(version, bound)

        if kind is ConstraintKind.EXACT:
            return order == 0
        elif kind is ConstraintKind.GT:
            return order > 0
        elif kind is ConstraintKind.GTE:
            return order >= 0
        elif kind is ConstraintKind.LT:
            return order < 0
        elif kind is ConstraintKind.LTE:
            return order <= 0
        elif kind is ConstraintKind.CARET:
            return order >= 0 and _caret_prefix(version, bound) == _caret_prefix(bound, bound)
        elif kind is ConstraintKind.TILDE:
            return (
                order >= 0
                and version.major == bound.major
                and version.minor == bound.minor
            )
        elif kind is ConstraintKind.RANGE:
            assert self.maximum is not None
            return order >= 0 and compare(version, self.maximum) <= 0
        else:  # pragma: no cover
            raise ValueError(f"Unknown constraint kind: {kind!r}")

    def __str__(self) -> str:
        kind = self.kind
        if kind is ConstraintKind.ANY:
            return "*"
        if kind is ConstraintKind.RANGE:
            return f"{self.version}...{self.maximum}"
        if kind is ConstraintKind.WILDCARD:
            if self.minor is None:
                return f"{self.major}.*"
            return f"{self.major}.{self.minor}.*"
        return f"{_OP_TEXT[kind]}{self.version}"


def _caret_prefix(version: SemanticVersion, bound: SemanticVersion) -> tuple[int, ...]:
    """Components of *version* that a caret on *bound* locks.

    ``^1.2.3`` locks the major, ``^0.2.3`` locks major.minor and ``^0.0.3``
    locks the whole triple.
    """
    if bound.major > 0:
        return (version.major,)
    if bound.minor > 0:
        return (version.major, version.minor)
    return version.triple


def parse_constraint(text: str) -> VersionConstraint:
    """Module-level alias for ``VersionConstraint.parse``."""
    return VersionConstraint.parse(text)


# ---------------------------------------------------------------------------
# Pairwise compatibility
# ---------------------------------------------------------------------------


def constraints_compatible(a: VersionConstraint, b: VersionConstraint) -> bool:
    """Decide structurally whether some version could satisfy both constraints.

    The check is symmetric and dispatches on the pair of kinds:

    - Any with anything: compatible.
    - Exact with anything: the other constraint must accept the exact version.
    - Caret with caret: the locked prefixes must agree (same major for
      ``>=1.0.0`` bounds).
    - Tilde with tilde: same major.minor.
    - Wildcard with wildcard: same major, and same minor where both pin one.
    - Bounds and ranges with each other: the intervals must overlap.

    Any other pair (caret with tilde, caret with a bound, ...) is assumed
    compatible; the candidate search in ``Resolver.resolve`` is what
    finally proves or refutes those.
    """
    if a.kind is ConstraintKind.ANY or b.kind is ConstraintKind.ANY:
        return True

    if a.kind is ConstraintKind.EXACT:
        assert a.version is not None
        return b.satisfies(a.version)
    if b.kind is ConstraintKind.EXACT:
        assert b.version is not None
        return a.satisfies(b.version)

    if a.kind is ConstraintKind.CARET and b.kind is ConstraintKind.CARET:
        assert a.version is not None and b.version is not None
        return _caret_prefix(a.version, a.version) == _caret_prefix(b.version, b.version)

    if a.kind is ConstraintKind.TILDE and b.kind is ConstraintKind.TILDE:
        assert a.version is not None and b.version is not None
        return (a.version.major, a.version.minor) == (b.version.major, b.version.minor)

    if a.kind is ConstraintKind.WILDCARD and b.kind is ConstraintKind.WILDCARD:
        if a.major != b.major:
            return False
        return a.minor is None or b.minor is None or a.minor == b.minor

    if a.kind in _BOUND_KINDS and b.kind in _BOUND_KINDS:
        return _intervals_overlap(_interval(a), _interval(b))

    return True


# (version, inclusive) for each end; None means unbounded.
_End = tuple[SemanticVersion, bool] | None


def _interval(c: VersionConstraint) -> tuple[_End, _End]:
    assert c.version is not None
    if c.kind is ConstraintKind.GT:
        return (c.version, False), None
    if c.kind is ConstraintKind.GTE:
        return (c.version, True), None
    if c.kind is ConstraintKind.LT:
        return None, (c.version, False)
    if c.kind is ConstraintKind.LTE:
        return None, (c.version, True)
    assert c.maximum is not None
    return (c.version, True), (c.maximum, True)


def _lower_below_upper(lower: _End, upper: _End) -> bool:
    if lower is None or upper is None:
        return True
    order = compare(lower[0], upper[0])
    if order < 0:
        return True
    return order == 0 and lower[1] and upper[1]


def _intervals_overlap(
    first: tuple[_End, _End], second: tuple[_End, _End]
) -> bool:
    return _lower_below_upper(first[0], second[1]) and _lower_below_upper(second[0], first[1])
