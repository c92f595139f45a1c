"""Dependency session: resolve, fetch, cache and lock in one pass.

``DependencySession`` ties the core components together the way the CLI
uses them::

    session = DependencySession(settings, FetcherRouter.default(), source)
    result = session.lock(read_manifest(settings.manifest_path))
    session.clean_cache()

Locking runs in rounds. Each round rebuilds the requirement set from the
project's dependencies and the manifests of the artifacts fetched so far,
checks it pairwise for conflicts, resolves every constrained package, and
fetches whatever is new or changed. Locking stops when a round has nothing
left to fetch; only packages still reachable from the project are locked.
Fetches of distinct packages run in a thread pool. Everything that
mutates the resolver, the cache, or the lockfile happens on the calling
thread.

Packages without a version constraint are pinned by their source: the
git commit for repositories, ``unversioned`` for archives and paths.
"""

from __future__ import annotations

import logging
import tempfile
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from pathlib import Path

from deplock.config import Settings
from deplock.core.cache import CleanReport, ContentStore, is_valid_digest
from deplock.core.dependency import (
    DependencyGraph,
    DependencyNode,
    Resolution,
    Resolver,
    StaticVersionSource,
    VersionConstraint,
    VersionSource,
)
from deplock.core.lockfile import Lockfile
from deplock.core.manifest import (
    MANIFEST_NAME,
    Dependency,
    GitSource,
    HostedSource,
    LocalSource,
    RegistrySource,
    format_source,
    read_manifest,
)
from deplock.core.resolution_cache import ResolutionCache
from deplock.exceptions import CircularDependencyError, FetchError, ResolutionError
from deplock.fetch.base import Fetcher, FetchResult
from deplock.fetch.hashing import hash_directory
from deplock.fetch.hosted import hosted_git_url

logger = logging.getLogger(__name__)

UNVERSIONED = "unversioned"


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass
class LockResult:
    """Outcome of ``DependencySession.lock``.

    Attributes:
        lockfile: The lockfile that was written.
        resolution: The final resolver result (constrained packages only).
        graph: Resolved dependency graph over every locked package.
        fetched: Names downloaded or copied during this run.
        reused: Names served from the content cache.
    """

    lockfile: Lockfile
    resolution: Resolution
    graph: DependencyGraph
    fetched: list[str] = field(default_factory=list)
    reused: list[str] = field(default_factory=list)


@dataclass
class VerifyReport:
    """Cached artifacts checked against the lockfile."""

    verified: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    mismatched: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.missing and not self.mismatched


@dataclass(frozen=True)
class _Planned:
    name: str
    dep: Dependency
    version: str | None


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class DependencySession:
    """One locking session over explicit roots.

    Args:
        settings: Cache root, lockfile path, worker count and cache TTL.
        fetcher: Retrieves artifacts, normally a ``FetcherRouter``.
        version_source: Candidate versions for constrained packages.

    Thread safety: a session is single-writer. Do not call ``lock`` and
    ``clean_cache`` concurrently on sessions sharing a cache root.
    """

    def __init__(
        self,
        settings: Settings,
        fetcher: Fetcher,
        version_source: VersionSource | None = None,
    ) -> None:
        self.settings = settings
        self.store = ContentStore(settings.cache_dir)
        self._fetcher = fetcher
        self._source = version_source or StaticVersionSource()

    # -- Locking ------------------------------------------------------------

    def lock(self, dependencies: list[Dependency], project: str = "project") -> LockResult:
        """Resolve, fetch and lock *dependencies*, then save the lockfile.

        Raises:
            ResolutionError: If requirements conflict pairwise; the
                ``conflicts`` attribute lists every conflicting pair.
            VersionConflict: If a package has no satisfying candidate.
            CircularDependencyError: If the locked packages form a cycle.
            FetchError: If any artifact cannot be fetched.
        """
        previous = Lockfile.load(self.settings.lockfile_path)
        cache = ResolutionCache(
            self.settings.resolution_cache_path, max_age=self.settings.resolution_ttl
        )

        children: dict[str, list[Dependency]] = {}
        results: dict[str, FetchResult] = {}
        versions: dict[str, str] = {}
        sources: dict[str, str] = {}
        fetched_as: dict[str, tuple[str, str | None]] = {}
        outcome = LockResult(Lockfile(), Resolution(), DependencyGraph())

        self.settings.cache_dir.mkdir(parents=True, exist_ok=True)
        with tempfile.TemporaryDirectory(prefix=".fetch-", dir=self.settings.cache_dir) as tmp:
            round_no = 0
            while True:
                round_no += 1
                resolver, declared = self._requirements(
                    dependencies, project, children, fetched_as, cache
                )
                conflicts = resolver.detect_conflicts()
                if conflicts:
                    raise ResolutionError(
                        f"{len(conflicts)} conflicting requirement pair(s): "
                        + "; ".join(str(c) for c in conflicts),
                        conflicts,
                    )
                resolution = resolver.resolve()

                plan = self._plan(declared, resolution, fetched_as)
                if not plan:
                    break
                logger.debug("Round %d: %d package(s) to fetch", round_no, len(plan))
                round_dir = Path(tmp) / str(round_no)
                for item, result, reused in self._fetch_all(plan, previous, round_dir):
                    source_text = format_source(item.dep.source)
                    fetched_as[item.name] = (source_text, item.version)
                    sources[item.name] = source_text
                    slot = self.store.store(result.hash, result.path)
                    results[item.name] = replace(result, path=slot)
                    versions[item.name] = item.version or self._pinned_version(
                        item, result, previous
                    )
                    (outcome.reused if reused else outcome.fetched).append(item.name)
                    children[item.name] = self._child_dependencies(slot)

        graph = DependencyGraph()
        for name in sorted(declared):
            edges = [child.name for child in children.get(name, [])]
            graph.add_to_graph(DependencyNode(name, versions.get(name, ""), edges))
        cycle = graph.detect_circular_dependencies()
        if cycle is not None:
            raise CircularDependencyError(list(cycle.cycle))

        # Only packages still reachable from the project are locked.
        results = {name: r for name, r in results.items() if name in declared}
        sources = {name: s for name, s in sources.items() if name in declared}
        pinned = {
            name: v for name, v in versions.items()
            if name in declared and name not in resolution.installed
        }
        lockfile = Lockfile.from_resolution(resolution, results, graph, sources, pinned)
        # Unchanged artifacts keep their original fetch record.
        for entry in lockfile.entries:
            old = previous.get(entry.name)
            if old is not None and (old.hash, old.source) == (entry.hash, entry.source):
                entry.provenance = old.provenance

        lockfile.save(self.settings.lockfile_path)
        cache.save()

        outcome.lockfile = lockfile
        outcome.resolution = resolution
        outcome.graph = graph
        outcome.fetched = sorted(set(outcome.fetched) & declared.keys())
        outcome.reused = sorted((set(outcome.reused) & declared.keys()) - set(outcome.fetched))
        logger.info(
            "Locked %d package(s): %d fetched, %d from cache",
            len(lockfile), len(outcome.fetched), len(outcome.reused),
        )
        return outcome

    def _requirements(
        self,
        dependencies: list[Dependency],
        project: str,
        children: dict[str, list[Dependency]],
        fetched_as: dict[str, tuple[str, str | None]],
        cache: ResolutionCache,
    ) -> tuple[Resolver, dict[str, Dependency]]:
        """Build this round's resolver from everything reachable from the project.

        Requirements are rebuilt from scratch each round, so a package
        dropped by every requester no longer contributes its own
        dependencies. Packages whose fetched artifact is about to be
        replaced (a new version or source) are treated as having no
        dependencies until the replacement has been read.
        """
        outdated: set[str] = set()
        while True:
            resolver = Resolver(self._source, cache)
            declared = self._collect(resolver, dependencies, project, children, outdated)
            trial = resolver.resolve_all()
            changed = {
                item.name
                for item in self._plan(declared, trial, fetched_as)
                if item.name in fetched_as
            } - outdated
            if not changed:
                return resolver, declared
            logger.debug("Outdated artifacts: %s", ", ".join(sorted(changed)))
            outdated |= changed

    def _collect(
        self,
        resolver: Resolver,
        dependencies: list[Dependency],
        project: str,
        children: dict[str, list[Dependency]],
        outdated: set[str],
    ) -> dict[str, Dependency]:
        declared: dict[str, Dependency] = {}
        queue = deque((dep, project) for dep in dependencies)
        while queue:
            dep, requester = queue.popleft()
            first = dep.name not in declared
            self._register(resolver, declared, dep, requester)
            if first and dep.name not in outdated:
                queue.extend((child, dep.name) for child in children.get(dep.name, []))
        return declared

    def _register(
        self,
        resolver: Resolver,
        declared: dict[str, Dependency],
        dep: Dependency,
        requester: str,
    ) -> None:
        if dep.name in declared:
            if declared[dep.name].source != dep.source:
                logger.debug(
                    "%s redeclares %s with another source; keeping the first",
                    requester, dep.name,
                )
        else:
            declared[dep.name] = dep
            url = _git_url(dep)
            if url is not None:
                self._source.declare(dep.name, url)

        constraint = dep.constraint
        if constraint is None and isinstance(dep.source, RegistrySource):
            constraint = VersionConstraint.parse(dep.source.version)
        if constraint is not None:
            resolver.add_requirement(dep.name, constraint, requester)

    def _plan(
        self,
        declared: dict[str, Dependency],
        resolution: Resolution,
        fetched_as: dict[str, tuple[str, str | None]],
    ) -> list[_Planned]:
        plan: list[_Planned] = []
        for name in sorted(declared):
            dep = declared[name]
            version: str | None = None
            package = resolution.resolved.get(name)
            if package is not None:
                version = str(package.version)
                ref = self._source.ref_for(name, package.version)
                if ref is not None and isinstance(dep.source, (GitSource, HostedSource)):
                    dep = replace(dep, source=replace(dep.source, ref=ref))
            if fetched_as.get(name) == (format_source(dep.source), version):
                continue
            plan.append(_Planned(name, dep, version))
        return plan

    def _fetch_all(
        self,
        plan: list[_Planned],
        previous: Lockfile,
        workdir: Path,
    ) -> list[tuple[_Planned, FetchResult, bool]]:
        done: list[tuple[_Planned, FetchResult, bool]] = []
        remote: list[_Planned] = []
        for item in plan:
            cached = self._from_cache(item, previous)
            if cached is not None:
                logger.debug("Reusing cached %s (%s)", item.name, cached.hash[:12])
                done.append((item, cached, True))
            else:
                remote.append(item)
        if not remote:
            return done

        workdir.mkdir(parents=True, exist_ok=True)
        with ThreadPoolExecutor(max_workers=self.settings.jobs) as pool:
            futures: list[tuple[_Planned, Future[FetchResult]]] = [
                (item, pool.submit(self._fetcher.fetch, item.dep, workdir / f"{i:04d}"))
                for i, item in enumerate(remote)
            ]

        errors: list[FetchError] = []
        for item, future in futures:
            try:
                done.append((item, future.result(), False))
            except FetchError as exc:
                logger.error("Failed to fetch %s: %s", item.name, exc)
                errors.append(exc)
        if errors:
            raise errors[0]
        return done

    def _from_cache(self, item: _Planned, previous: Lockfile) -> FetchResult | None:
        # Local trees can change in place; always rehash them.
        if isinstance(item.dep.source, LocalSource):
            return None
        entry = previous.get(item.name)
        if entry is None or entry.source != format_source(item.dep.source):
            return None
        if item.version is not None and entry.version != item.version:
            return None
        if not is_valid_digest(entry.hash) or not self.store.is_cached(entry.hash):
            return None
        origin = entry.provenance.origin if entry.provenance else None
        return FetchResult(
            path=self.store.path_for(entry.hash),
            hash=entry.hash,
            origin=origin or entry.source,
            size_bytes=self.store.size_of(entry.hash),
        )

    @staticmethod
    def _pinned_version(item: _Planned, result: FetchResult, previous: Lockfile) -> str:
        if result.commit:
            return result.commit
        old = previous.get(item.name)
        if old is not None and old.hash == result.hash and old.version:
            return old.version
        return UNVERSIONED

    @staticmethod
    def _child_dependencies(slot: Path) -> list[Dependency]:
        manifest = slot / MANIFEST_NAME
        if not manifest.is_file():
            return []
        return read_manifest(manifest)

    # -- Maintenance --------------------------------------------------------

    def clean_cache(self) -> CleanReport:
        """Remove cached artifacts that the current lockfile no longer references.

        Expired resolution-cache entries are dropped as well.
        """
        lockfile = Lockfile.load(self.settings.lockfile_path)
        report = self.store.clean(lockfile.hashes())

        cache = ResolutionCache(
            self.settings.resolution_cache_path, max_age=self.settings.resolution_ttl
        )
        dropped = cache.clean_old()
        cache.save()
        if dropped:
            logger.info("Dropped %d expired resolution cache entries", dropped)
        return report

    def verify(self) -> VerifyReport:
        """Recompute the content hash of every locked artifact in the cache."""
        lockfile = Lockfile.load(self.settings.lockfile_path)
        report = VerifyReport()
        for entry in lockfile.entries:
            if not is_valid_digest(entry.hash) or not self.store.is_cached(entry.hash):
                report.missing.append(entry.name)
                continue
            actual = hash_directory(self.store.path_for(entry.hash))
            if actual != entry.hash:
                logger.warning(
                    "Cached %s does not match its hash: %s != %s",
                    entry.name, actual[:12], entry.hash[:12],
                )
                report.mismatched.append(entry.name)
            else:
                report.verified.append(entry.name)
        return report


def _git_url(dep: Dependency) -> str | None:
    if isinstance(dep.source, GitSource):
        return dep.source.url
    if isinstance(dep.source, HostedSource):
        return hosted_git_url(dep.source)
    return None
