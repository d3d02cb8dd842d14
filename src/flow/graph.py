"""
Pull-based dependency graph for derived flow values.

Each node declares the input fields and upstream nodes it reads. update()
marks affected nodes invalid and bumps their generation; refresh()
recomputes invalid nodes in registration order. A computation that
finishes after its node's generation moved on is discarded.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional

logger = logging.getLogger(__name__)


class NodeStatus(Enum):
    INVALID = "invalid"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"
    BLOCKED = "blocked"  # an upstream node is not ready


@dataclass(frozen=True)
class NodeState:
    status: NodeStatus = NodeStatus.INVALID
    value: Any = None
    error: Optional[BaseException] = None
    generation: int = 0

    @property
    def is_ready(self) -> bool:
        return self.status is NodeStatus.READY

    @property
    def is_loading(self) -> bool:
        return self.status in (NodeStatus.INVALID, NodeStatus.LOADING)


@dataclass(frozen=True)
class Snapshot:
    """Inputs and upstream values handed to a node's compute function."""

    inputs: Mapping[str, Any]
    upstream: Mapping[str, Any]

    def __getitem__(self, name: str) -> Any:
        if name in self.upstream:
            return self.upstream[name]
        return self.inputs.get(name)


Compute = Callable[[Snapshot], Awaitable[Any]]


@dataclass
class Node:
    name: str
    compute: Compute
    inputs: tuple[str, ...] = ()
    deps: tuple[str, ...] = ()
    state: NodeState = field(default_factory=NodeState)


class DependencyGraph:
    def __init__(self, **inputs: Any):
        self._inputs: dict[str, Any] = dict(inputs)
        self._nodes: dict[str, Node] = {}
        self._lock = asyncio.Lock()

    @property
    def inputs(self) -> Mapping[str, Any]:
        return dict(self._inputs)

    def add(
        self,
        name: str,
        compute: Compute,
        inputs: Iterable[str] = (),
        deps: Iterable[str] = (),
    ) -> None:
        if name in self._nodes:
            raise ValueError(f"node {name!r} already registered")
        deps = tuple(deps)
        for dep in deps:
            if dep not in self._nodes:
                raise ValueError(f"node {name!r} depends on unknown node {dep!r}")
        self._nodes[name] = Node(name, compute, tuple(inputs), deps)

    def state(self, name: str) -> NodeState:
        return self._nodes[name].state

    def value(self, name: str) -> Any:
        return self._nodes[name].state.value

    def update(self, **changes: Any) -> set[str]:
        """Apply input changes; return the names of invalidated nodes."""
        changed = {
            key
            for key, value in changes.items()
            if key not in self._inputs or self._inputs[key] != value
        }
        self._inputs.update(changes)
        if not changed:
            return set()
        direct = [node.name for node in self._nodes.values() if changed & set(node.inputs)]
        return self._invalidate(direct)

    def invalidate(self, *names: str) -> set[str]:
        """Force recomputation, e.g. an explicit retry after an error."""
        return self._invalidate(names)

    async def refresh(self) -> None:
        """Recompute until no node is waiting, including nodes invalidated mid-refresh."""
        async with self._lock:
            while True:
                due = [node for node in self._nodes.values() if self._is_due(node)]
                if not due:
                    return
                for node in due:
                    if self._is_due(node):
                        await self._recompute(node)

    def _is_due(self, node: Node) -> bool:
        if node.state.status is NodeStatus.INVALID:
            return True
        if node.state.status is NodeStatus.BLOCKED:
            return all(self._nodes[dep].state.is_ready for dep in node.deps)
        return False

    def _invalidate(self, names: Iterable[str]) -> set[str]:
        pending = list(names)
        invalidated: set[str] = set()
        while pending:
            name = pending.pop()
            if name in invalidated:
                continue
            invalidated.add(name)
            node = self._nodes[name]
            node.state = NodeState(generation=node.state.generation + 1)
            pending.extend(
                other.name for other in self._nodes.values() if name in other.deps
            )
        if invalidated:
            logger.debug("invalidated %s", sorted(invalidated))
        return invalidated

    async def _recompute(self, node: Node) -> None:
        generation = node.state.generation
        upstream = {dep: self._nodes[dep].state for dep in node.deps}
        blocked = [dep for dep, state in upstream.items() if not state.is_ready]
        if blocked:
            node.state = NodeState(NodeStatus.BLOCKED, generation=generation)
            return

        snapshot = Snapshot(
            inputs={key: self._inputs.get(key) for key in node.inputs},
            upstream={dep: state.value for dep, state in upstream.items()},
        )
        node.state = NodeState(NodeStatus.LOADING, generation=generation)
        try:
            value = await node.compute(snapshot)
        except Exception as exc:
            if node.state.generation != generation:
                logger.debug("discarding stale failure of %s", node.name)
                return
            logger.warning("node %s failed: %s", node.name, exc)
            node.state = NodeState(NodeStatus.ERROR, error=exc, generation=generation)
            return

        if node.state.generation != generation:
            logger.info("discarding stale result of %s", node.name)
            return
        node.state = NodeState(NodeStatus.READY, value=value, generation=generation)
