# file_changes.py
from __future__ import annotations

from typing import List, Optional, Union

from .git_facts.git import diff_file_paths
from .graph import iter_nodes, project_paths
from .model import ChangePattern, ProjectFileChanges, ProjectNode

# A change to the root lockfile can affect any project transitively.
ROOT_LOCKFILE = "pnpm-lock.yaml"


def _relative_to(project_path: str, file_path: str) -> str:
    if not project_path:
        return file_path
    return file_path[len(project_path) + 1:]


def changed_files_for_project(project_path: str, changed_files: List[str]) -> List[str]:
    """
    Return the files under `project_path`, relative to it.

    An empty project path is the monorepo itself: every file belongs to it.
    """
    if not project_path:
        return list(changed_files)

    prefix = project_path + "/"
    return [_relative_to(project_path, f) for f in changed_files if f.startswith(prefix)]


def _change_patterns(node: ProjectNode) -> List[ChangePattern]:
    if node.ci_config is None:
        return []
    patterns: List[ChangePattern] = []
    for job_config in node.ci_config.jobs:
        patterns.extend(job_config.changes or [])
    return patterns


def assign_file_changes(
    project_graph: ProjectNode,
    changed_file_paths: List[str],
) -> Union[ProjectFileChanges, bool]:
    """
    Attribute repo-relative changed files to the projects in the graph.

    Returns a map of project name -> project-relative files, or True when
    every project has to be treated as changed.
    """
    if ROOT_LOCKFILE in changed_file_paths:
        return True

    paths = project_paths(project_graph)
    changes: ProjectFileChanges = {}

    # ---- pass 1: ownership by path, deepest projects first ----
    unclaimed = list(changed_file_paths)
    for name, path in paths.items():
        if not path:
            continue

        project_changes = changed_files_for_project(path, unclaimed)
        if not project_changes:
            continue

        changes[name] = project_changes
        prefix = path + "/"
        unclaimed = [f for f in unclaimed if not f.startswith(prefix)]

    # ---- pass 2: leftovers belong to the monorepo root (first one only) ----
    for name, path in paths.items():
        if path:
            continue

        if unclaimed:
            changes[name] = changed_files_for_project(path, unclaimed)
        break

    # ---- pass 3: parents claim nested files matching their CI patterns ----
    for node in iter_nodes(project_graph):
        if node.ci_config is None or not node.path:
            continue

        patterns = _change_patterns(node)
        if not patterns:
            continue

        for relative_path in changed_files_for_project(node.path, changed_file_paths):
            if not any(p.matches(relative_path) for p in patterns):
                continue

            project_changes = changes.setdefault(node.name, [])
            if relative_path not in project_changes:
                project_changes.append(relative_path)

    return changes


def get_file_changes(
    project_graph: ProjectNode,
    base_ref: str,
    pr_number: Optional[str] = None,
) -> Union[ProjectFileChanges, bool]:
    """
    Pull every changed file since `base_ref` (or in PR `pr_number`) and
    attribute it to the projects in `project_graph`.
    """
    changed = diff_file_paths(base_ref, pr_number)
    return assign_file_changes(project_graph, changed)
