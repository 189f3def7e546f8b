from .dsl import lint, project, test
from .file_changes import assign_file_changes, get_file_changes
from .job_processing import CreateOptions, MissingCommandVarError, create_jobs_for_changes
from .model import Jobs, LintJob, ProjectNode, TestJob

__all__ = [
    "lint",
    "project",
    "test",
    "assign_file_changes",
    "get_file_changes",
    "CreateOptions",
    "MissingCommandVarError",
    "create_jobs_for_changes",
    "Jobs",
    "LintJob",
    "ProjectNode",
    "TestJob",
]
