# config.py
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Union

from .model import (
    ChangePattern,
    CIConfig,
    JobConfig,
    LintJobConfig,
    ReportConfig,
    TestEnvConfig,
    TestJobConfig,
)

LINT_KEYS = {"changes", "command", "optional", "events"}
TEST_KEYS = LINT_KEYS | {
    "name",
    "testType",
    "testEnv",
    "report",
    "shardingArguments",
    "onlyForDependencies",
}
TEST_ENV_CONFIG_KEYS = {"wpVersion": "wp_version", "phpVersion": "php_version"}


@dataclass
class CIConfigError(ValueError):
    """A project's CI configuration is malformed."""
    project: str
    message: str

    def __str__(self) -> str:
        return f"Invalid CI config for '{self.project}': {self.message}"


def glob_to_regex(glob: str) -> str:
    """
    Translate a path glob into an anchored regex.

    `**` matches across directories, `*` stays within a path segment.
    """
    out: List[str] = []
    i = 0
    while i < len(glob):
        if glob.startswith("**/", i):
            out.append("(?:.*/)?")
            i += 3
        elif glob.startswith("**", i):
            out.append(".*")
            i += 2
        elif glob[i] == "*":
            out.append("[^/]*")
            i += 1
        elif glob[i] == "?":
            out.append("[^/]")
            i += 1
        else:
            out.append(re.escape(glob[i]))
            i += 1
    return "^" + "".join(out) + "$"


def parse_changes(project: str, raw: Any) -> List[ChangePattern]:
    if isinstance(raw, (str, re.Pattern)):
        raw = [raw]
    if not isinstance(raw, list):
        raise CIConfigError(project, f"'changes' must be a string or a list, got {type(raw).__name__}")

    patterns: List[ChangePattern] = []
    for entry in raw:
        if isinstance(entry, re.Pattern):
            patterns.append(ChangePattern(entry))
        elif isinstance(entry, str):
            patterns.append(ChangePattern.compile(glob_to_regex(entry)))
        else:
            raise CIConfigError(project, f"invalid 'changes' entry: {entry!r}")
    return patterns


def _string_list(project: str, key: str, raw: Any) -> List[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        return [raw]
    if not isinstance(raw, list) or not all(isinstance(v, str) for v in raw):
        raise CIConfigError(project, f"'{key}' must be a list of strings")
    return list(raw)


def _check_keys(project: str, raw: Mapping[str, Any], allowed: set, kind: str) -> None:
    unknown = sorted(set(raw) - allowed)
    if unknown:
        raise CIConfigError(project, f"unknown {kind} keys: {unknown}")


def _require_command(project: str, raw: Mapping[str, Any], kind: str) -> str:
    command = raw.get("command")
    if not isinstance(command, str) or not command:
        raise CIConfigError(project, f"{kind} job is missing 'command'")
    return command


def parse_lint_config(project: str, raw: Mapping[str, Any]) -> LintJobConfig:
    _check_keys(project, raw, LINT_KEYS, "lint")
    return LintJobConfig(
        changes=parse_changes(project, raw.get("changes", [])),
        command=_require_command(project, raw, "lint"),
        optional=bool(raw.get("optional", False)),
        events=_string_list(project, "events", raw.get("events")),
    )


def _parse_test_env(project: str, raw: Any) -> Optional[TestEnvConfig]:
    if raw is None:
        return None
    if not isinstance(raw, dict) or not isinstance(raw.get("start"), str):
        raise CIConfigError(project, "'testEnv' must define a 'start' command")

    env_config: Dict[str, str] = {}
    for key, value in (raw.get("config") or {}).items():
        if key not in TEST_ENV_CONFIG_KEYS:
            raise CIConfigError(project, f"unknown testEnv config key: {key!r}")
        env_config[TEST_ENV_CONFIG_KEYS[key]] = str(value)

    return TestEnvConfig(start=raw["start"], config=env_config)


def _parse_report(raw: Any) -> ReportConfig:
    if not raw:
        return ReportConfig()
    return ReportConfig(
        results_blob_name=raw.get("resultsBlobName", ""),
        results_path=raw.get("resultsPath", ""),
        allure=bool(raw.get("allure", False)),
    )


def parse_test_config(
    project: str,
    raw: Mapping[str, Any],
    default_changes: Optional[List[ChangePattern]] = None,
) -> TestJobConfig:
    _check_keys(project, raw, TEST_KEYS, "test")

    name = raw.get("name")
    if not isinstance(name, str) or not name:
        raise CIConfigError(project, "test job is missing 'name'")

    if "changes" in raw:
        changes = parse_changes(project, raw["changes"])
    else:
        changes = list(default_changes or [])

    only_for = raw.get("onlyForDependencies")

    return TestJobConfig(
        name=name,
        changes=changes,
        command=_require_command(project, raw, "test"),
        test_type=raw.get("testType", "default"),
        optional=bool(raw.get("optional", False)),
        events=_string_list(project, "events", raw.get("events")),
        report=_parse_report(raw.get("report")),
        sharding_arguments=_string_list(project, "shardingArguments", raw.get("shardingArguments")),
        test_env=_parse_test_env(project, raw.get("testEnv")),
        only_for_dependencies=None if only_for is None else _string_list(project, "onlyForDependencies", only_for),
    )


def parse_ci_config(project: str, raw: Union[Mapping[str, Any], None]) -> Optional[CIConfig]:
    """
    Parse a `config.ci` block (as found in a project's package.json).

    {
      "lint": {"changes": "src/**", "command": "lint"},
      "tests": [{"name": "Unit", "changes": ["src/**"], "command": "test:unit"}]
    }
    """
    if raw is None:
        return None
    _check_keys(project, raw, {"lint", "tests"}, "ci")

    jobs: List[JobConfig] = []
    lint_changes: List[ChangePattern] = []

    if raw.get("lint") is not None:
        lint = parse_lint_config(project, raw["lint"])
        lint_changes = lint.changes
        jobs.append(lint)

    tests = raw.get("tests") or []
    if not isinstance(tests, list):
        raise CIConfigError(project, "'tests' must be a list")
    for entry in tests:
        jobs.append(parse_test_config(project, entry, default_changes=lint_changes))

    return CIConfig(jobs=jobs)
