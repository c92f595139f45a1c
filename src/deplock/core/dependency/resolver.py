"""Requirement aggregation, conflict detection and version selection.

Many requesters may constrain the same package. The resolver collects every
``Requirement`` per package name and, for each name, selects the *highest*
candidate version (from a ``VersionSource``) that satisfies *every*
registered constraint. It never falls back to a default: a package with no
acceptable candidate is a ``VersionConflict``.

``detect_conflicts`` is a cheaper structural pre-check that compares every
pair of requirements for a package without consulting the version source.
Callers should inspect it before trusting ``resolve()`` for a reproducible
build.

Thread safety: a ``Resolver`` assumes a single writer. Serialize all
``add_requirement`` and ``resolve`` calls on one instance.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from deplock.core.dependency.constraints import (
    VersionConstraint,
    constraints_compatible,
)
from deplock.core.dependency.semver import SemanticVersion
from deplock.core.dependency.sources import VersionSource
from deplock.core.resolution_cache import ResolutionCache
from deplock.exceptions import VersionConflict, VersionParseError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Requirement:
    """One requester's version need for a package.

    Attributes:
        package_name: The required package.
        constraint: Acceptable versions.
        requested_by: Name of the requester (the project or a dependency).
    """

    package_name: str
    constraint: VersionConstraint
    requested_by: str


@dataclass(frozen=True)
class ResolvedPackage:
    """The version chosen for a package name in one resolution pass."""

    name: str
    version: SemanticVersion
    url: str | None = None
    hash: str | None = None


@dataclass(frozen=True)
class Conflict:
    """A pair of requirements on the same package that cannot both hold."""

    package_name: str
    requirement1: Requirement
    requirement2: Requirement

    def __str__(self) -> str:
        return (
            f"{self.package_name}: {self.requirement1.constraint} "
            f"(from {self.requirement1.requested_by}) conflicts with "
            f"{self.requirement2.constraint} (from {self.requirement2.requested_by})"
        )


@dataclass(frozen=True)
class Unsatisfiable:
    """A package for which no candidate satisfies all requirements."""

    package_name: str
    requirements: tuple[Requirement, ...]
    available: tuple[SemanticVersion, ...]


@dataclass
class Resolution:
    """Result of a resolution pass.

    Attributes:
        resolved: Package name to chosen package. One entry per name.
        unsatisfiable: Packages that could not be resolved. Always empty
            for results returned by ``Resolver.resolve``.
    """

    resolved: dict[str, ResolvedPackage] = field(default_factory=dict)
    unsatisfiable: list[Unsatisfiable] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.unsatisfiable

    @property
    def installed(self) -> dict[str, str]:
        """Package name to resolved version string, sorted by name."""
        return {name: str(self.resolved[name].version) for name in sorted(self.resolved)}


@dataclass(frozen=True)
class ResolutionSummary:
    total_packages: int
    total_requirements: int
    packages: dict[str, str]


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class Resolver:
    """Aggregates requirements and selects one version per package.

    Args:
        source: Provider of candidate versions.
        cache: Optional resolution cache. Cached answers are still checked
            against every constraint before they are used.

    Example::

        resolver = Resolver(StaticVersionSource({"pkg": ["1.0.4", "1.0.7", "1.4.0"]}))
        resolver.add_requirement("pkg", "^1.0.0", "my-project")
        resolver.add_requirement("pkg", "~1.0.5", "http")
        assert not resolver.detect_conflicts()
        resolver.resolve().installed  # {"pkg": "1.0.7"}
    """

    def __init__(self, source: VersionSource, cache: ResolutionCache | None = None) -> None:
        self._source = source
        self._cache = cache
        self._requirements: dict[str, list[Requirement]] = {}
        self._resolved: dict[str, ResolvedPackage] = {}

    # -- Requirements -------------------------------------------------------

    def add_requirement(
        self,
        name: str,
        constraint: VersionConstraint | str,
        requested_by: str,
    ) -> Requirement:
        """Append a requirement for *name*.

        Constraint strings are parsed immediately, so malformed input fails
        here rather than during resolution.

        Raises:
            VersionParseError: If *constraint* is a malformed string.
        """
        if isinstance(constraint, str):
            constraint = VersionConstraint.parse(constraint)
        requirement = Requirement(name, constraint, requested_by)
        self._requirements.setdefault(name, []).append(requirement)
        return requirement

    @property
    def package_names(self) -> list[str]:
        """Names with at least one requirement, in first-seen order."""
        return list(self._requirements)

    def requirements_for(self, name: str) -> list[Requirement]:
        return list(self._requirements.get(name, []))

    @property
    def resolved(self) -> dict[str, ResolvedPackage]:
        """Packages chosen by the most recent resolution pass."""
        return dict(self._resolved)

    # -- Conflict detection -------------------------------------------------

    def detect_conflicts(self) -> list[Conflict]:
        """Compare every pair of requirements sharing a package name.

        Returns:
            Incompatible pairs, grouped by package name (first-seen order)
            and in registration order within a package. Empty if none.
        """
        conflicts: list[Conflict] = []
        for name, reqs in self._requirements.items():
            for i, first in enumerate(reqs):
                for second in reqs[i + 1:]:
                    if not constraints_compatible(first.constraint, second.constraint):
                        conflicts.append(Conflict(name, first, second))
        return conflicts

    # -- Resolution ---------------------------------------------------------

    def resolve(self) -> Resolution:
        """Select the highest satisfying version for every required package.

        Resolved packages are rebuilt from scratch on every call.

        Raises:
            VersionConflict: For the first package (in name order) with no
                candidate satisfying all of its constraints.
        """
        return self._run(stop_on_failure=True)

    def resolve_all(self) -> Resolution:
        """Like ``resolve`` but collects every unsatisfiable package instead of raising."""
        return self._run(stop_on_failure=False)

    def _run(self, stop_on_failure: bool) -> Resolution:
        self._resolved = {}
        resolution = Resolution()

        for name in sorted(self._requirements):
            reqs = self._requirements[name]
            version = self._cached_choice(name, reqs)
            available: list[SemanticVersion] = []
            if version is None:
                available = self._source.available_versions(name)
                version = select_highest(available, [r.constraint for r in reqs])
            if version is None:
                if stop_on_failure:
                    raise VersionConflict(name, reqs, sorted(available))
                resolution.unsatisfiable.append(
                    Unsatisfiable(name, tuple(reqs), tuple(sorted(available)))
                )
                continue

            logger.debug("Resolved %s to %s", name, version)
            if self._cache is not None:
                self._cache.put(self._cache_key(name, reqs), str(version))
            package = ResolvedPackage(name=name, version=version)
            self._resolved[name] = package
            resolution.resolved[name] = package

        return resolution

    def _cache_key(self, name: str, reqs: list[Requirement]) -> str:
        return ResolutionCache.spec_key(name, [str(r.constraint) for r in reqs])

    def _cached_choice(self, name: str, reqs: list[Requirement]) -> SemanticVersion | None:
        if self._cache is None:
            return None
        key = self._cache_key(name, reqs)
        entry = self._cache.get(key)
        if entry is None or not self._cache.is_valid(key):
            return None
        try:
            version = SemanticVersion.parse(entry.resolved_version)
        except VersionParseError:
            self._cache.invalidate(key)
            return None
        if all(r.constraint.satisfies(version) for r in reqs):
            logger.debug("Resolution cache hit for %s: %s", name, version)
            return version
        self._cache.invalidate(key)
        return None

    def summary(self) -> ResolutionSummary:
        return ResolutionSummary(
            total_packages=len(self._resolved),
            total_requirements=sum(len(r) for r in self._requirements.values()),
            packages={n: str(p.version) for n, p in sorted(self._resolved.items())},
        )


def select_highest(
    candidates: list[SemanticVersion],
    constraints: list[VersionConstraint],
) -> SemanticVersion | None:
    """Return the highest candidate accepted by every constraint, or None."""
    for candidate in sorted(set(candidates), reverse=True):
        if all(c.satisfies(candidate) for c in constraints):
            return candidate
    return None
