"""Dependency graph keyed by package name, cycle detection and display trees.

The resolved graph stores one node per package name with its chosen
version and an ordered list of dependency *names*. Edges are by name, not
by object reference, so the graph never holds reference cycles even when
the dependency relation has one.

A separate ``TreeNode`` structure (strict parent-owns-children) backs the
human-readable tree rendering. Packages that were already shown elsewhere
in the tree are rendered as leaves on redisplay.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field

from deplock.exceptions import CircularDependencyError


# ---------------------------------------------------------------------------
# DependencyNode & CircularDependency
# ---------------------------------------------------------------------------


@dataclass
class DependencyNode:
    """A resolved package in the graph.

    Attributes:
        name: Package name.
        version: Resolved version string.
        dependencies: Ordered names of the packages this one depends on.
    """

    name: str
    version: str
    dependencies: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class CircularDependency:
    """A dependency cycle as an ordered, closed path of package names.

    The path always closes: ``cycle[0] == cycle[-1]`` and ``len(cycle) >= 2``.
    """

    cycle: tuple[str, ...]

    def __post_init__(self) -> None:
        if len(self.cycle) < 2 or self.cycle[0] != self.cycle[-1]:
            raise ValueError(f"Cycle path must close on itself: {self.cycle!r}")

    @property
    def members(self) -> set[str]:
        """The distinct package names on the cycle."""
        return set(self.cycle)

    def __str__(self) -> str:
        return " -> ".join(self.cycle)


# ---------------------------------------------------------------------------
# DependencyGraph
# ---------------------------------------------------------------------------


class DependencyGraph:
    """Directed graph of resolved packages keyed by name.

    Thread safety: This class is NOT thread-safe. All mutation must happen
    from a single writer; concurrent reads are safe once writes are done.
    """

    def __init__(self) -> None:
        self._nodes: dict[str, DependencyNode] = {}

    @property
    def names(self) -> list[str]:
        """Package names in insertion order."""
        return list(self._nodes)

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    def __contains__(self, name: object) -> bool:
        return name in self._nodes

    def add_to_graph(self, node: DependencyNode) -> None:
        """Insert a node, overwriting any existing node with the same name."""
        self._nodes[node.name] = node

    def get_node(self, name: str) -> DependencyNode | None:
        return self._nodes.get(name)

    def edges(self) -> list[tuple[str, str]]:
        """All (dependent, dependency) edges in insertion order."""
        return [
            (node.name, dep)
            for node in self._nodes.values()
            for dep in node.dependencies
        ]

    def detect_circular_dependencies(self) -> CircularDependency | None:
        """Find one dependency cycle using depth-first search.

        DFS starts from every unvisited node in insertion order, tracking
        the nodes on the current stack and the current path. The first time
        an edge reaches a node that is still on the stack, the path from
        that node plus the node itself is returned and the scan stops.
        Only one cycle is reported per call. Runs in O(V + E) with an
        explicit stack, so chain depth is not bounded by the recursion limit.

        Edges to names that have no node are followed as leaves.

        Returns:
            The first ``CircularDependency`` found, or None if acyclic.
        """
        visited: set[str] = set()
        on_stack: set[str] = set()
        path: list[str] = []

        for root in self._nodes:
            if root in visited:
                continue
            visited.add(root)
            on_stack.add(root)
            path.append(root)
            stack = [iter(self._dependencies(root))]
            while stack:
                dep = next(stack[-1], None)
                if dep is None:
                    stack.pop()
                    on_stack.discard(path.pop())
                elif dep in on_stack:
                    start = path.index(dep)
                    return CircularDependency(tuple(path[start:]) + (dep,))
                elif dep not in visited:
                    visited.add(dep)
                    on_stack.add(dep)
                    path.append(dep)
                    stack.append(iter(self._dependencies(dep)))
        return None

    def _dependencies(self, name: str) -> list[str]:
        node = self._nodes.get(name)
        return node.dependencies if node else []

    def transitive_dependencies(self, name: str) -> set[str]:
        """Names reachable from *name* via dependency edges (BFS), excluding *name*."""
        seen: set[str] = set()
        queue: deque[str] = deque([name])
        while queue:
            current = queue.popleft()
            node = self._nodes.get(current)
            if node is None:
                continue
            for dep in node.dependencies:
                if dep not in seen:
                    seen.add(dep)
                    queue.append(dep)
        seen.discard(name)
        return seen

    def dependents_of(self, name: str) -> list[str]:
        """Names of nodes that depend directly on *name*, sorted."""
        return sorted(
            node.name for node in self._nodes.values() if name in node.dependencies
        )

    def paths_to(self, target: str) -> list[list[str]]:
        """Every simple dependency chain from a root package to *target*.

        Roots are nodes that no other node depends on. Used to explain why
        a package is part of the resolution.

        Returns:
            Sorted list of paths, each starting at a root and ending at
            *target*. A root that is itself *target* yields ``[target]``.
        """
        depended_on = {dep for _, dep in self.edges()}
        roots = [name for name in self._nodes if name not in depended_on]
        paths: list[list[str]] = []
        stack = [(root, [root]) for root in roots]
        while stack:
            name, trail = stack.pop()
            if name == target:
                paths.append(trail)
                continue
            for dep in self._dependencies(name):
                if dep not in trail:
                    stack.append((dep, trail + [dep]))
        return sorted(paths)

    def topological_order(self) -> list[str]:
        """Install order: every package appears after its dependencies.

        Raises:
            CircularDependencyError: If the graph contains a cycle.
        """
        cycle = self.detect_circular_dependencies()
        if cycle is not None:
            raise CircularDependencyError(list(cycle.cycle))

        order: list[str] = []
        done: set[str] = set()
        for root in self._nodes:
            if root in done:
                continue
            done.add(root)
            stack = [(root, iter(self._dependencies(root)))]
            while stack:
                name, deps = stack[-1]
                dep = next(deps, None)
                if dep is None:
                    stack.pop()
                    if name in self._nodes:
                        order.append(name)
                elif dep not in done:
                    done.add(dep)
                    stack.append((dep, iter(self._dependencies(dep))))
        return order


# ---------------------------------------------------------------------------
# Display tree
# ---------------------------------------------------------------------------


@dataclass
class TreeNode:
    """A node of the display tree; each node exclusively owns its children."""

    name: str
    version: str
    children: list[TreeNode] = field(default_factory=list)

    def add_child(self, child: TreeNode) -> None:
        self.children.append(child)


@dataclass(frozen=True)
class DependencyStats:
    """Counts over a display tree.

    Attributes:
        total: Number of tree nodes including the root.
        unique: Number of distinct package names.
        max_depth: Depth of the deepest node (root is depth 0).
    """

    total: int
    unique: int
    max_depth: int


def build_display_tree(graph: DependencyGraph, root: str) -> TreeNode:
    """Build a display tree for *root* from the graph.

    A package that was already expanded elsewhere, or that closes a cycle
    back to an ancestor, appears as a leaf. Dependencies without a node in
    the graph are shown with version ``?``.
    """
    shown: set[str] = set()

    def _leaf(name: str) -> TreeNode:
        node = graph.get_node(name)
        return TreeNode(name=name, version=node.version if node else "?")

    tree = _leaf(root)
    stack = [tree]
    while stack:
        current = stack.pop()
        node = graph.get_node(current.name)
        if current.name in shown or node is None:
            continue
        shown.add(current.name)
        for dep in node.dependencies:
            current.add_child(_leaf(dep))
        # First child on top of the stack.
        stack.extend(reversed(current.children))
    return tree


def render_tree(root: TreeNode) -> str:
    """Render a display tree with box-drawing branches.

    Example::

        app @ 1.0.0
        ├── http @ 2.1.0
        │   └── tls @ 0.4.2
        └── log @ 1.3.0
    """
    lines = [f"{root.name} @ {root.version}"]
    stack = _branches(root, "")
    while stack:
        node, prefix, last = stack.pop()
        lines.append(f"{prefix}{'└── ' if last else '├── '}{node.name} @ {node.version}")
        stack.extend(_branches(node, prefix + ("    " if last else "│   ")))
    return "\n".join(lines)


def _branches(node: TreeNode, prefix: str) -> list[tuple[TreeNode, str, bool]]:
    """Children of *node* as render-stack items, first child on top."""
    count = len(node.children)
    return [
        (child, prefix, i == count - 1)
        for i, child in reversed(list(enumerate(node.children)))
    ]


def tree_stats(root: TreeNode) -> DependencyStats:
    total = 0
    max_depth = 0
    unique: set[str] = set()
    stack: list[tuple[TreeNode, int]] = [(root, 0)]
    while stack:
        node, depth = stack.pop()
        total += 1
        unique.add(node.name)
        max_depth = max(max_depth, depth)
        stack.extend((child, depth + 1) for child in node.children)
    return DependencyStats(total=total, unique=len(unique), max_depth=max_depth)
