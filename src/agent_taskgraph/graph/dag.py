"""
Dependency graph algorithms.

Edges point from a task to the tasks it depends on. Graphs are small (tens to
low hundreds of nodes), so cycle checks are plain depth-first searches run on
every edge mutation instead of maintained incrementally.
"""

from collections import defaultdict
from heapq import heapify, heappop, heappush
from typing import Callable, Iterable, Optional

from ..errors import CycleDetectedError
from .models import Task

DepsFn = Callable[[str], Iterable[str]]


def find_path(deps_of: DepsFn, start: str, target: str) -> Optional[list[str]]:
	"""Return a dependency path from start to target, or None."""
	stack: list[tuple[str, list[str]]] = [(start, [start])]
	seen: set[str] = set()
	while stack:
		node, path = stack.pop()
		if node == target:
			return path
		if node in seen:
			continue
		seen.add(node)
		for dep in deps_of(node):
			if dep not in seen:
				stack.append((dep, path + [dep]))
	return None


def cycle_through(deps_of: DepsFn, node: str, new_deps: Iterable[str]) -> Optional[list[str]]:
	"""
	Check whether giving node the edges new_deps would close a cycle.

	Runs a traversal from each newly referenced node looking for a way back
	to node. deps_of must already reflect every other provisional edge.

	Returns:
		The cycle as [node, ..., node], or None
	"""
	for dep in new_deps:
		if dep == node:
			return [node, node]
		path = find_path(deps_of, dep, node)
		if path:
			return [node] + path
	return None


def transitive_dependencies(deps_of: DepsFn, roots: Iterable[str]) -> set[str]:
	"""All nodes reachable from roots along dependency edges, roots included."""
	seen: set[str] = set()
	stack = list(roots)
	while stack:
		node = stack.pop()
		if node in seen:
			continue
		seen.add(node)
		stack.extend(deps_of(node))
	return seen


def dependents_of(tasks: Iterable[Task], task_id: str) -> list[str]:
	"""Ids of the tasks that directly depend on task_id, in input order."""
	return [t.id for t in tasks if task_id in t.dependencies]


def topological_order(tasks: Iterable[Task]) -> list[Task]:
	"""
	Order tasks so that every task comes after the tasks it depends on.

	Only edges between the given tasks count. Ties are broken by creation
	timestamp, then id, so the result is deterministic.

	Raises:
		CycleDetectedError: If the edges contain a cycle
	"""
	by_id = {t.id: t for t in tasks}
	indegree: dict[str, int] = {}
	dependents: dict[str, list[str]] = defaultdict(list)

	for task in by_id.values():
		deps = {d for d in task.dependencies if d in by_id}
		indegree[task.id] = len(deps)
		for dep in deps:
			dependents[dep].append(task.id)

	heap = [by_id[tid].sort_key() for tid, count in indegree.items() if count == 0]
	heapify(heap)

	order: list[Task] = []
	while heap:
		_, task_id = heappop(heap)
		order.append(by_id[task_id])
		for child in dependents[task_id]:
			indegree[child] -= 1
			if indegree[child] == 0:
				heappush(heap, by_id[child].sort_key())

	if len(order) != len(by_id):
		remaining = sorted(tid for tid, count in indegree.items() if count > 0)
		raise CycleDetectedError(
			f"Dependency cycle among tasks: {', '.join(remaining)}",
			ids=remaining,
		)
	return order
