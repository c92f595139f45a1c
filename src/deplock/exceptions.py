"""deplock exception hierarchy.

All public exceptions inherit from DeplockError, giving callers a single
base class to catch when they want to handle any deplock-specific failure
without swallowing unrelated errors.

Every exception carries the structured context (package name, constraints,
cycle path, digest) needed to build a human-readable message, so callers
never have to re-derive it from the message text.
"""

from __future__ import annotations

from typing import Any


class DeplockError(Exception):
    """Base exception for all deplock errors."""


class VersionParseError(DeplockError, ValueError):
    """Raised when a version or constraint string is malformed.

    Parsing fails fast: no partial result is ever returned.

    Attributes:
        text: The offending input string.
    """

    def __init__(self, message: str, text: str = "") -> None:
        super().__init__(message)
        self.text = text


class ResolutionError(DeplockError):
    """Raised when dependency resolution fails.

    Attributes:
        conflicts: Pairwise conflicts found before resolution, if any.
    """

    def __init__(self, message: str, conflicts: list[Any] | None = None) -> None:
        super().__init__(message)
        self.conflicts = list(conflicts or [])


class VersionConflict(ResolutionError):
    """Raised when no candidate version satisfies every requirement of a package.

    Attributes:
        package_name: The package that could not be resolved.
        requirements: Every requirement registered for the package.
        available: The candidate versions the version source offered.
    """

    def __init__(
        self,
        package_name: str,
        requirements: list[Any],
        available: list[Any],
    ) -> None:
        constraints = ", ".join(
            f"{r.constraint} (from {r.requested_by})" for r in requirements
        )
        shown = ", ".join(str(v) for v in available) or "none"
        super().__init__(
            f"No version of {package_name!r} satisfies all constraints: "
            f"{constraints} (available: {shown})"
        )
        self.package_name = package_name
        self.requirements = list(requirements)
        self.available = list(available)


class CircularDependencyError(ResolutionError):
    """Raised when an operation needs an acyclic graph and finds a cycle.

    Attributes:
        cycle: Ordered path of package names where first == last.
    """

    def __init__(self, cycle: list[str]) -> None:
        super().__init__(f"Circular dependency: {' -> '.join(cycle)}")
        self.cycle = list(cycle)


class CacheError(DeplockError):
    """Base class for content-addressed cache failures."""


class NotCachedError(CacheError, KeyError):
    """Raised when retrieving a digest that has no cache entry.

    Attributes:
        digest: The requested content hash.
    """

    def __init__(self, digest: str) -> None:
        super().__init__(f"Not cached: {digest}")
        self.digest = digest

    def __str__(self) -> str:
        return f"Not cached: {self.digest}"


class InvalidDigestError(CacheError, ValueError):
    """Raised when a cache key is not a lowercase hex SHA-256 digest."""

    def __init__(self, digest: str) -> None:
        super().__init__(f"Invalid content digest: {digest!r}")
        self.digest = digest


class LockfileError(DeplockError):
    """Raised when a lockfile document has an invalid structure.

    I/O and JSON decoding errors are not wrapped; they propagate unchanged.
    """


class PolicyError(DeplockError):
    """Raised when a policy file exists but cannot be parsed.

    Policy *violations* are never exceptions; they are reported as data.
    """


class FetchError(DeplockError):
    """Raised when a fetcher cannot retrieve a dependency.

    Attributes:
        package_name: The dependency being fetched.
    """

    def __init__(self, message: str, package_name: str = "") -> None:
        super().__init__(message)
        self.package_name = package_name


class HashMismatchError(FetchError):
    """Raised when downloaded content does not match its declared digest.

    The partial artifact has already been deleted when this is raised.

    Attributes:
        expected: The declared digest.
        actual: The digest computed over the downloaded bytes.
    """

    def __init__(self, package_name: str, expected: str, actual: str) -> None:
        super().__init__(
            f"Hash mismatch for {package_name!r}: expected {expected}, got {actual}",
            package_name=package_name,
        )
        self.expected = expected
        self.actual = actual


class ManifestError(DeplockError):
    """Raised when a manifest document is structurally invalid.

    Attributes:
        path: The manifest file, or an empty string for in-memory data.
    """

    def __init__(self, message: str, path: str = "") -> None:
        super().__init__(message)
        self.path = path
