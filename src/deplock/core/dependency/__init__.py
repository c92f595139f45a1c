"""Version engine, dependency graph and resolver.

All public names are re-exported here so callers can write
``from deplock.core.dependency import Resolver, VersionConstraint``.

Leaf-to-root, the package is:

- ``semver``: ``SemanticVersion`` parsing, formatting and ordering.
- ``constraints``: the ``VersionConstraint`` tagged variant and the
  structural pairwise compatibility check.
- ``graph``: name-keyed ``DependencyGraph`` with DFS cycle detection, plus
  the display tree used for human-readable rendering.
- ``sources``: providers of candidate versions.
- ``resolver``: requirement aggregation, conflict detection and
  highest-satisfying version selection.
"""

from deplock.core.dependency.semver import (
    SemanticVersion,
    compare,
    parse_version,
)
from deplock.core.dependency.constraints import (
    ConstraintKind,
    VersionConstraint,
    constraints_compatible,
    parse_constraint,
)
from deplock.core.dependency.graph import (
    CircularDependency,
    DependencyGraph,
    DependencyNode,
    DependencyStats,
    TreeNode,
    build_display_tree,
    render_tree,
    tree_stats,
)
from deplock.core.dependency.sources import (
    GitTagVersionSource,
    StaticVersionSource,
    VersionSource,
    parse_tag_listing,
)
from deplock.core.dependency.resolver import (
    Conflict,
    Requirement,
    Resolution,
    ResolutionSummary,
    ResolvedPackage,
    Resolver,
    Unsatisfiable,
    select_highest,
)

__all__ = [
    "SemanticVersion",
    "compare",
    "parse_version",
    "ConstraintKind",
    "VersionConstraint",
    "constraints_compatible",
    "parse_constraint",
    "CircularDependency",
    "DependencyGraph",
    "DependencyNode",
    "DependencyStats",
    "TreeNode",
    "build_display_tree",
    "render_tree",
    "tree_stats",
    "GitTagVersionSource",
    "StaticVersionSource",
    "VersionSource",
    "parse_tag_listing",
    "Conflict",
    "Requirement",
    "Resolution",
    "ResolutionSummary",
    "ResolvedPackage",
    "Resolver",
    "Unsatisfiable",
    "select_highest",
]
