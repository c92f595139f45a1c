"""Lockfile and provenance: reproducible records of a resolution.

The package is split into focused submodules:

- ``models``: ``LockfileEntry`` and ``Provenance`` data classes.
- ``lockfile``: the ``Lockfile`` class with entry management, hashing and
  deterministic, atomic serialization.
- ``operations``: deserialization (``from_dict``, ``from_json``, ``load``),
  validation, diffing and manifest drift detection.
- ``factory``: ``from_resolution`` for building a lockfile from a resolver
  result and fetch results.

All public names are re-exported here.
"""

from deplock.core.lockfile.models import LockfileEntry, Provenance
from deplock.core.lockfile.lockfile import Lockfile
from deplock.core.lockfile import operations as _ops
from deplock.core.lockfile import factory as _factory
from deplock.core.lockfile.operations import is_stale

Lockfile.from_dict = classmethod(_ops._from_dict)
Lockfile.from_json = classmethod(_ops._from_json)
Lockfile.load = classmethod(_ops._load)
Lockfile.to_graph = _ops._to_graph
Lockfile.validate = _ops._validate
Lockfile.diff = _ops._diff
Lockfile.from_resolution = classmethod(_factory._from_resolution)

__all__ = [
    "Lockfile",
    "LockfileEntry",
    "Provenance",
    "is_stale",
]
