# src/cijobs/dsl.py
from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Sequence, Union

from .config import parse_changes, parse_ci_config
from .model import (
    CIConfig,
    JobConfig,
    LintJobConfig,
    ProjectNode,
    ReportConfig,
    TestEnvConfig,
    TestJobConfig,
)

Changes = Union[str, re.Pattern, Sequence[Union[str, re.Pattern]]]


def _changes(changes: Changes) -> list:
    if isinstance(changes, (str, re.Pattern)):
        return [changes]
    return list(changes)


# ---------------------------------------------------------------------
# Job config helpers
# ---------------------------------------------------------------------

def lint(
    changes: Changes,
    command: str,
    *,
    optional: bool = False,
    events: Optional[List[str]] = None,
) -> LintJobConfig:
    """Create a lint job config. `changes` are path globs or compiled regexes."""
    return LintJobConfig(
        changes=parse_changes("<dsl>", _changes(changes)),
        command=command,
        optional=optional,
        events=events or [],
    )


def test(
    name: str,
    changes: Changes,
    command: str,
    *,
    test_type: str = "default",
    optional: bool = False,
    events: Optional[List[str]] = None,
    shards: Optional[List[str]] = None,
    start: Optional[str] = None,
    wp_version: Optional[str] = None,
    php_version: Optional[str] = None,
    report: Optional[ReportConfig] = None,
    only_for_dependencies: Optional[List[str]] = None,
) -> TestJobConfig:
    """
    Create a test job config.

    Passing `start` attaches a test environment; wp_version/php_version
    are resolved into environment variables when jobs are created.
    """
    test_env = None
    if start is not None:
        env_config: Dict[str, str] = {}
        if wp_version:
            env_config["wp_version"] = wp_version
        if php_version:
            env_config["php_version"] = php_version
        test_env = TestEnvConfig(start=start, config=env_config)
    elif wp_version or php_version:
        raise ValueError(f"test({name!r}) sets a WordPress/PHP version but no `start` command")

    return TestJobConfig(
        name=name,
        changes=parse_changes("<dsl>", _changes(changes)),
        command=command,
        test_type=test_type,
        optional=optional,
        events=events or [],
        report=report or ReportConfig(),
        sharding_arguments=shards or [],
        test_env=test_env,
        only_for_dependencies=only_for_dependencies,
    )


# Keep pytest from collecting the helper when a test module imports it.
test.__test__ = False


# ---------------------------------------------------------------------
# Project helper
# ---------------------------------------------------------------------

def project(
    name: str,
    path: str = "",
    *dependencies: ProjectNode,
    jobs: Optional[List[JobConfig]] = None,
    ci: Optional[Dict[str, Any]] = None,
) -> ProjectNode:
    """
    Create a project node.

    CI jobs come either from DSL helpers (`jobs=[lint(...), test(...)]`)
    or from a raw package.json-style block (`ci={"lint": ..., "tests": [...]}`).
    """
    if jobs is not None and ci is not None:
        raise ValueError(f"project({name!r}) takes either jobs= or ci=, not both")

    ci_config: Optional[CIConfig] = None
    if jobs is not None:
        ci_config = CIConfig(jobs=list(jobs))
    elif ci is not None:
        ci_config = parse_ci_config(name, ci)

    return ProjectNode(
        name=name,
        path=path.strip("/"),
        ci_config=ci_config,
        dependencies=list(dependencies),
    )
