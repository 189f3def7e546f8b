# job_processing.py
from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Mapping, Optional, Set, Tuple, Union

from .model import (
    JobConfig,
    JobType,
    Jobs,
    LintJob,
    LintJobConfig,
    ProjectFileChanges,
    ProjectNode,
    TestJob,
    TestJobConfig,
    TestJobEnv,
)
from .test_environment import TestEnvVars, is_prerelease_label, parse_test_env_config
from .ui.console import get_console

# Resolves a test environment config into environment variables.
TestEnvResolver = Callable[[Mapping[str, str]], Awaitable[TestEnvVars]]

# (project name, index of the job in the project's CI config)
JobKey = Tuple[str, int]

_COMMAND_VAR = re.compile(r"<([^>]+)>")


@dataclass
class MissingCommandVarError(ValueError):
    """A command template references a variable that was not provided."""
    key: str
    command: str

    def __str__(self) -> str:
        return f"Missing command variable '{self.key}'."


@dataclass
class CreateOptions:
    """
    Options used when creating jobs.

    command_vars: values for `<var>` tokens in commands, e.g. baseRef, event.
    """
    command_vars: Dict[str, str] = field(default_factory=dict)

    @property
    def event(self) -> Optional[str]:
        return self.command_vars.get("event") or None


def replace_command_vars(command: str, options: CreateOptions) -> str:
    """Replace every `<var>` token in the command with its value."""

    def _sub(m: re.Match) -> str:
        key = m.group(1)
        value = options.command_vars.get(key)
        if value is None:
            raise MissingCommandVarError(key=key, command=command)
        return value

    return _COMMAND_VAR.sub(_sub, command)


def is_triggered(config: JobConfig, changes: Union[List[str], bool]) -> bool:
    """
    Check whether any changed file matches one of the config's patterns.

    True means every file is considered changed.
    """
    if changes is True:
        return True
    return any(pattern.matches(f) for f in changes for pattern in config.changes)


def get_sharded_jobs(job: TestJob, config: TestJobConfig) -> List[TestJob]:
    """
    Multiply a job according to its sharding arguments.

    Each shard gets one argument appended to its command and an "i/N"
    suffix on its name.
    """
    shards = len(config.sharding_arguments)
    if shards <= 1:
        return [job]

    sharded: List[TestJob] = []
    for i, argument in enumerate(config.sharding_arguments, start=1):
        shard = copy.deepcopy(job)
        shard.shard_number = i
        shard.name = f"{job.name} {i}/{shards}"
        shard.command = f"{job.command} {argument}"
        sharded.append(shard)
    return sharded


def create_lint_job(
    project_name: str,
    project_path: str,
    config: LintJobConfig,
    changes: Union[List[str], bool],
    options: CreateOptions,
) -> Optional[LintJob]:
    if not is_triggered(config, changes):
        return None

    return LintJob(
        project_name=project_name,
        project_path=project_path,
        command=replace_command_vars(config.command, options),
        optional=config.optional,
    )


async def create_test_job(
    project_name: str,
    project_path: str,
    config: TestJobConfig,
    options: CreateOptions,
    resolver: TestEnvResolver,
    shard_number: int = 0,
) -> Optional[TestJob]:
    """
    Build the descriptor for a triggered test job.

    Returns None when the job asks for a pre-release environment that is
    not currently available.
    """
    created = TestJob(
        project_name=project_name,
        project_path=project_path,
        name=config.name,
        command=replace_command_vars(config.command, options),
        test_env=TestJobEnv(),
        shard_number=shard_number,
        optional=config.optional,
        test_type=config.test_type,
        report=config.report,
    )

    if config.test_env is not None:
        created.test_env = TestJobEnv(
            should_create=True,
            env_vars=await resolver(config.test_env.config),
            start=replace_command_vars(config.test_env.start, options),
        )

        wp_version = config.test_env.wp_version
        if is_prerelease_label(wp_version) and not created.test_env.env_vars.get("WP_VERSION"):
            get_console().print_warning(
                f"No WP offer was found for config.wpVersion:{wp_version}. Job was not created."
            )
            return None

    resolved = created.test_env.env_vars.get("WP_VERSION")
    if resolved:
        created.name += f" [WP {resolved}]"

    return created


def _event_allowed(config: JobConfig, options: CreateOptions) -> bool:
    event = options.event
    if not event or not config.events:
        return True
    return event.lower() in (e.lower() for e in config.events)


async def _create_jobs_for_project(
    node: ProjectNode,
    changes: Union[ProjectFileChanges, bool],
    options: CreateOptions,
    resolver: TestEnvResolver,
    created: Set[JobKey],
) -> Jobs:
    jobs = Jobs()
    dependencies_with_changes: List[str] = []

    for dependency in node.dependencies:
        dependency_jobs = await _create_jobs_for_project(
            dependency, changes, options, resolver, created
        )
        jobs.extend(dependency_jobs)

        # Either files changed in the dependency itself, or something below
        # it was relevant enough to spawn jobs.
        has_changes = changes is not True and bool(changes.get(dependency.name))
        if has_changes or len(dependency_jobs) > 0:
            dependencies_with_changes.append(dependency.name)

    if node.ci_config is None:
        return jobs

    for index, job_config in enumerate(node.ci_config.jobs):
        key = (node.name, index)
        if key in created:
            continue

        if not _event_allowed(job_config, options):
            continue

        project_changes: Union[List[str], bool]
        if changes is True:
            project_changes = True
        else:
            project_changes = changes.get(node.name, [])

        if job_config.type is JobType.LINT:
            lint_job = create_lint_job(node.name, node.path, job_config, project_changes, options)
            if lint_job is None:
                continue

            created.add(key)
            jobs.lint.append(lint_job)
            continue

        if dependencies_with_changes:
            only_for = job_config.only_for_dependencies
            if only_for is None or any(dep in dependencies_with_changes for dep in only_for):
                project_changes = True

        if not is_triggered(job_config, project_changes):
            continue

        # Realized even when the pre-release check below suppresses it.
        created.add(key)
        test_job = await create_test_job(node.name, node.path, job_config, options, resolver)
        if test_job is None:
            continue

        jobs.test.extend(get_sharded_jobs(test_job, job_config))

    return jobs


async def create_jobs_for_changes(
    root: ProjectNode,
    changes: Union[ProjectFileChanges, bool],
    options: Optional[CreateOptions] = None,
    resolver: TestEnvResolver = parse_test_env_config,
) -> Jobs:
    """
    Create the jobs to run for the given project graph and file changes.

    The graph is walked dependency-first. Each job config is realized at
    most once per call, even when its project is reachable through more
    than one parent.
    """
    return await _create_jobs_for_project(
        root, changes, options or CreateOptions(), resolver, set()
    )
