# model.py
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class JobType(str, Enum):
    LINT = "lint"
    TEST = "test"


@dataclass(frozen=True)
class ChangePattern:
    """A path trigger rule matched against project-relative file paths."""
    regex: re.Pattern

    @classmethod
    def compile(cls, pattern: Union[str, re.Pattern]) -> ChangePattern:
        if isinstance(pattern, re.Pattern):
            return cls(pattern)
        return cls(re.compile(pattern))

    def matches(self, relative_path: str) -> bool:
        return self.regex.search(relative_path) is not None


@dataclass(frozen=True)
class ReportConfig:
    results_blob_name: str = ""
    results_path: str = ""
    allure: bool = False


@dataclass(frozen=True)
class TestEnvConfig:
    """
    Test environment requested by a test job.

    `start` is a command template run by the CI to boot the environment,
    `config` holds the requested platform versions (wp_version, php_version).
    """
    __test__ = False  # not a pytest class

    start: str
    config: Dict[str, str] = field(default_factory=dict)

    @property
    def wp_version(self) -> Optional[str]:
        return self.config.get("wp_version")

    @property
    def php_version(self) -> Optional[str]:
        return self.config.get("php_version")


@dataclass
class LintJobConfig:
    changes: List[ChangePattern]
    command: str
    optional: bool = False
    events: List[str] = field(default_factory=list)

    type: JobType = field(default=JobType.LINT, init=False)


@dataclass
class TestJobConfig:
    __test__ = False

    name: str
    changes: List[ChangePattern]
    command: str
    test_type: str = "default"
    optional: bool = False
    events: List[str] = field(default_factory=list)
    report: ReportConfig = field(default_factory=ReportConfig)
    sharding_arguments: List[str] = field(default_factory=list)
    test_env: Optional[TestEnvConfig] = None
    # Restricts "a dependency changed" escalation to these dependency names.
    only_for_dependencies: Optional[List[str]] = None

    type: JobType = field(default=JobType.TEST, init=False)


JobConfig = Union[LintJobConfig, TestJobConfig]


@dataclass
class CIConfig:
    jobs: List[JobConfig] = field(default_factory=list)


@dataclass
class ProjectNode:
    """
    A project in the monorepo graph.

    The same project may appear under several parents; traversals guard
    against revisits by name.
    """
    name: str
    path: str
    ci_config: Optional[CIConfig] = None
    dependencies: List[ProjectNode] = field(default_factory=list)


# Project name -> changed files relative to the project path.
ProjectFileChanges = Dict[str, List[str]]


# ---------------------------------------------------------------------
# Output descriptors
# ---------------------------------------------------------------------

@dataclass
class LintJob:
    project_name: str
    project_path: str
    command: str
    optional: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "projectName": self.project_name,
            "projectPath": self.project_path,
            "command": self.command,
            "optional": self.optional,
        }


@dataclass
class TestJobEnv:
    __test__ = False

    should_create: bool = False
    env_vars: Dict[str, str] = field(default_factory=dict)
    start: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "shouldCreate": self.should_create,
            "envVars": dict(self.env_vars),
        }
        if self.start is not None:
            data["start"] = self.start
        return data


@dataclass
class TestJob:
    __test__ = False

    project_name: str
    project_path: str
    name: str
    command: str
    test_env: TestJobEnv
    shard_number: int
    optional: bool
    test_type: str
    report: ReportConfig

    def to_dict(self) -> Dict[str, Any]:
        return {
            "projectName": self.project_name,
            "projectPath": self.project_path,
            "name": self.name,
            "command": self.command,
            "testEnv": self.test_env.to_dict(),
            "shardNumber": self.shard_number,
            "optional": self.optional,
            "testType": self.test_type,
            "report": {
                "resultsBlobName": self.report.results_blob_name,
                "resultsPath": self.report.results_path,
                "allure": self.report.allure,
            },
        }


@dataclass
class Jobs:
    lint: List[LintJob] = field(default_factory=list)
    test: List[TestJob] = field(default_factory=list)

    def extend(self, other: Jobs) -> None:
        self.lint.extend(other.lint)
        self.test.extend(other.test)

    def __len__(self) -> int:
        return len(self.lint) + len(self.test)

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            "lint": [j.to_dict() for j in self.lint],
            "test": [j.to_dict() for j in self.test],
        }
