"""Lockfile factory: constructing lockfiles from resolution results.

``from_resolution`` is the primary entry point in the normal workflow::

    resolution = resolver.resolve()
    lockfile = Lockfile.from_resolution(resolution, fetched, graph, sources)
    lockfile.save(Path("deplock.lock"))
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from deplock.core.lockfile.models import LockfileEntry, Provenance


def _from_resolution(
    cls: type,
    resolution: Any,
    fetched: Mapping[str, Any],
    graph: Any | None = None,
    sources: Mapping[str, str] | None = None,
    pinned: Mapping[str, str] | None = None,
) -> Any:
    """Create a lockfile from a successful ``Resolution``.

    Args:
        resolution: ``Resolution`` from ``Resolver.resolve``.
        fetched: Package name to fetch result (anything with ``hash``,
            ``origin`` and ``size_bytes`` attributes). Every resolved
            package must have one.
        graph: Optional ``DependencyGraph`` supplying dependency edges.
        sources: Optional package name to formatted source string.
        pinned: Optional versions of packages pinned by their source
            rather than chosen by the resolver (git commits, paths).

    Returns:
        A new ``Lockfile``.

    Raises:
        ValueError: If the resolution failed or a package was not fetched.
    """
    if not resolution.success:
        names = ", ".join(u.package_name for u in resolution.unsatisfiable)
        raise ValueError(f"Cannot create lockfile from failed resolution: {names}")

    versions = dict(pinned or {})
    versions.update(resolution.installed)

    lf = cls()
    for name, version in sorted(versions.items()):
        result = fetched.get(name)
        if result is None:
            raise ValueError(f"Package {name!r} was resolved but not fetched")

        dependencies: list[str] = []
        if graph is not None:
            node = graph.get_node(name)
            if node is not None:
                dependencies = list(node.dependencies)

        lf.add_entry(LockfileEntry(
            name=name,
            version=version,
            hash=result.hash,
            source=(sources or {}).get(name, ""),
            dependencies=dependencies,
            provenance=Provenance.now(result.origin, result.hash, result.size_bytes),
        ))
    return lf
