# graph.py
from __future__ import annotations

from collections import deque
from typing import Dict, Iterator, List, Tuple

from .model import ProjectNode


def iter_nodes(root: ProjectNode) -> Iterator[ProjectNode]:
    """
    Breadth-first walk over the project graph.

    A project reachable through several parents is yielded once (visited
    set keyed by project name).
    """
    q = deque([root])
    visited: set[str] = set()

    while q:
        node = q.popleft()
        if node.name in visited:
            continue

        visited.add(node.name)
        yield node
        q.extend(node.dependencies)


def path_depth(path: str) -> int:
    return len(path.split("/"))


def project_paths(root: ProjectNode) -> Dict[str, str]:
    """
    Return name -> path for every project, deepest path first.

    Nested projects must be matched before their ancestors so they claim
    their own files; ties keep BFS order.
    """
    entries: List[Tuple[str, str, int]] = [
        (node.name, node.path, path_depth(node.path)) for node in iter_nodes(root)
    ]
    entries.sort(key=lambda e: e[2], reverse=True)
    return {name: path for name, path, _depth in entries}
