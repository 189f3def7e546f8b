# runner.py
from __future__ import annotations

import json
import runpy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from .config import parse_ci_config
from .file_changes import get_file_changes
from .job_processing import CreateOptions, TestEnvResolver, create_jobs_for_changes
from .model import Jobs, ProjectFileChanges, ProjectNode
from .test_environment import parse_test_env_config
from .ui.console import get_console


# ----------------------------------------------------------------------
# Graph loading (local file/module)
# ----------------------------------------------------------------------

def graph_from_dict(data: Mapping[str, Any]) -> ProjectNode:
    """
    Build a project graph from its JSON form:

        {"name": ..., "path": ..., "ci": {...}, "dependencies": [...]}

    Projects listed more than once (by name) share a single node.
    """
    nodes: Dict[str, ProjectNode] = {}

    def _build(entry: Mapping[str, Any]) -> ProjectNode:
        if "name" not in entry:
            raise ValueError(f"Project entry is missing 'name': {dict(entry)!r}")

        name = entry["name"]
        node = nodes.get(name)
        if node is None:
            node = ProjectNode(
                name=name,
                path=str(entry.get("path", "")).strip("/"),
                ci_config=parse_ci_config(name, entry.get("ci")),
            )
            nodes[name] = node
        elif entry.get("ci") is not None and node.ci_config is None:
            node.ci_config = parse_ci_config(name, entry["ci"])

        if not node.dependencies:
            node.dependencies = [_build(dep) for dep in entry.get("dependencies", [])]
        return node

    return _build(data)


def load_graph(path: Union[str, Path]) -> ProjectNode:
    """
    Load a project graph from a workflow file.

    A .py file must define either:
      - graph() -> ProjectNode
      - GRAPH = ProjectNode(...)
    A .json file holds the graph in the form read by graph_from_dict().
    """
    wf_path = Path(path).expanduser().resolve()
    if not wf_path.exists():
        raise FileNotFoundError(f"Workflow file not found: {wf_path}")

    if wf_path.suffix == ".json":
        return graph_from_dict(json.loads(wf_path.read_text(encoding="utf-8")))

    if wf_path.suffix != ".py":
        raise ValueError(f"Workflow must be a .py or .json file, got: {wf_path.name}")

    module_name = f"cijobs_workflow_{wf_path.stem}"
    globals_dict = runpy.run_path(str(wf_path), run_name=module_name)

    root = None
    if "graph" in globals_dict and callable(globals_dict["graph"]):
        root = globals_dict["graph"]()
    elif "GRAPH" in globals_dict:
        root = globals_dict["GRAPH"]

    if not isinstance(root, ProjectNode):
        raise TypeError(
            "Workflow must return/define a ProjectNode. "
            "Define graph() -> ProjectNode or GRAPH = project(...)."
        )

    return root


# ----------------------------------------------------------------------
# Planning
# ----------------------------------------------------------------------

@dataclass
class Plan:
    changes: Union[ProjectFileChanges, bool]
    jobs: Jobs


async def plan_jobs(
    graph: ProjectNode,
    *,
    base_ref: str = "origin/trunk",
    pr_number: Optional[str] = None,
    event: Optional[str] = None,
    force_all: bool = False,
    resolver: TestEnvResolver = parse_test_env_config,
) -> Plan:
    """
    Attribute the diff to projects and derive the jobs to run.

    `force_all` skips the diff and treats every project as changed.
    """
    console = get_console()

    changes: Union[ProjectFileChanges, bool]
    if force_all:
        changes = True
    else:
        changes = get_file_changes(graph, base_ref, pr_number)
    console.print_debug(f"file changes: {changes!r}")

    command_vars = {"baseRef": base_ref}
    if event:
        command_vars["event"] = event

    jobs = await create_jobs_for_changes(
        graph,
        changes,
        CreateOptions(command_vars=command_vars),
        resolver=resolver,
    )
    return Plan(changes=changes, jobs=jobs)
