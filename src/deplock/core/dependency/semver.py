"""Semantic versions: parsing, formatting and total ordering.

Versions follow the ``MAJOR.MINOR.PATCH[-PRERELEASE][+BUILD]`` shape of
SemVer 2.0.0. All three numeric components are mandatory; prerelease and
build metadata are kept as opaque strings.

Ordering is by the numeric triple, then a release ranks strictly above any
prerelease of the same triple, then two prereleases compare by plain
lexical string order. The lexical rule deviates from SemVer section 11
(``alpha.10`` sorts before ``alpha.2``); it is kept so that versions stored
in existing lockfiles keep their relative order.

References
----------
.. [SemVer] Preston-Werner, T. (2013). "Semantic Versioning 2.0.0."
   https://semver.org/
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from deplock.exceptions import VersionParseError

_SEMVER_RE = re.compile(
    r"^(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<pre>[0-9A-Za-z\-.]+))?"
    r"(?:\+(?P<build>[0-9A-Za-z\-.]+))?$"
)


@dataclass(frozen=True)
class SemanticVersion:
    """An immutable semantic version.

    Equality and hashing ignore ``build``, matching ``compare``: two
    versions differing only in build metadata are the same version.

    Attributes:
        major: Major version number.
        minor: Minor version number.
        patch: Patch version number.
        prerelease: Prerelease tag without the leading ``-``, or None.
        build: Build metadata without the leading ``+``, or None.
    """

    major: int
    minor: int
    patch: int
    prerelease: str | None = None
    build: str | None = field(default=None, compare=False)

    @classmethod
    def parse(cls, text: str) -> SemanticVersion:
        """Parse a version string such as ``1.2.3``, ``1.0.0-rc.1+abc``.

        Args:
            text: The version string. Surrounding whitespace is ignored.

        Returns:
            The parsed ``SemanticVersion``.

        Raises:
            VersionParseError: If the string is not a valid version.
        """
        m = _SEMVER_RE.match(text.strip())
        if not m:
            raise VersionParseError(f"Invalid semantic version: {text!r}", text)
        return cls(
            major=int(m.group("major")),
            minor=int(m.group("minor")),
            patch=int(m.group("patch")),
            prerelease=m.group("pre"),
            build=m.group("build"),
        )

    @property
    def triple(self) -> tuple[int, int, int]:
        """The numeric (major, minor, patch) triple."""
        return self.major, self.minor, self.patch

    @property
    def is_prerelease(self) -> bool:
        return self.prerelease is not None

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease is not None:
            text += f"-{self.prerelease}"
        if self.build is not None:
            text += f"+{self.build}"
        return text

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return compare(self, other) < 0

    def __le__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return compare(self, other) <= 0

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return compare(self, other) > 0

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return compare(self, other) >= 0


def parse_version(text: str) -> SemanticVersion:
    """Module-level alias for ``SemanticVersion.parse``."""
    return SemanticVersion.parse(text)


def compare(a: SemanticVersion, b: SemanticVersion) -> int:
    """Three-way comparison of two versions.

    Returns:
        -1 if ``a < b``, 0 if they are equal, 1 if ``a > b``.
    """
    if a.triple != b.triple:
        return -1 if a.triple < b.triple else 1

    if a.prerelease is None and b.prerelease is None:
        return 0
    if a.prerelease is None:
        return 1
    if b.prerelease is None:
        return -1

    if a.prerelease == b.prerelease:
        return 0
    return -1 if a.prerelease < b.prerelease else 1
