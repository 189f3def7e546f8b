# cli.py
from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import click

from cijobs.file_changes import get_file_changes
from cijobs.graph import iter_nodes
from cijobs.runner import load_graph, plan_jobs
from cijobs.ui.console import Console, get_console, set_console

DEFAULT_WORKFLOW = "cijobs_workflow.py"


def discover_workflow(workflow_arg: str | None) -> Path:
    """
    Resolve the workflow file from the CLI argument or the default name.

    Raises:
        SystemExit: If the workflow cannot be found
    """
    console = get_console()

    workflow_path = Path(workflow_arg or DEFAULT_WORKFLOW)
    if not workflow_path.exists() and workflow_path.suffix not in (".py", ".json"):
        workflow_path = Path(str(workflow_path) + ".py")

    if not workflow_path.exists():
        console.print_error(
            "Workflow file not found",
            f"Could not find workflow file: {workflow_arg or DEFAULT_WORKFLOW}",
            suggestion="Create a workflow file defining graph(), or specify one:\n  cijobs jobs --workflow my_workflow.py",
        )
        sys.exit(1)

    return workflow_path


def write_github_output(path: str | Path, outputs: dict[str, str]) -> None:
    """Append `name=value` lines to a GitHub Actions output file."""
    with open(path, "a", encoding="utf-8") as fh:
        for name, value in outputs.items():
            fh.write(f"{name}={value}\n")


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
def cli(debug):
    """cijobs: pick the CI jobs a monorepo change needs."""
    console = Console(debug=debug)
    set_console(console)


@cli.command()
@click.option(
    "--workflow",
    default=None,
    help=f"Workflow file path (defaults to {DEFAULT_WORKFLOW})",
)
@click.option("--base-ref", default="origin/trunk", show_default=True, help="Git ref to diff against")
@click.option("--pr-number", default=None, help="Pull request whose diff should be used instead of --base-ref")
@click.option("--event", default=None, help="Triggering event name, e.g. pull_request or push")
@click.option("--force/--no-force", default=False, help="Treat every project as changed")
@click.option(
    "--github-output",
    default=None,
    envvar="GITHUB_OUTPUT",
    type=click.Path(dir_okay=False),
    help="GitHub Actions output file to append lint-jobs/test-jobs to",
)
def jobs(workflow, base_ref, pr_number, event, force, github_output):
    """Print the lint and test jobs for the current changes as JSON."""
    console = get_console()
    workflow_path = discover_workflow(workflow)

    try:
        graph = load_graph(workflow_path)

        console.print_plan_started(
            workflow=workflow_path.name,
            project_count=sum(1 for _ in iter_nodes(graph)),
            diff_source="forced" if force else (f"PR #{pr_number}" if pr_number else base_ref),
        )

        plan = asyncio.run(
            plan_jobs(
                graph,
                base_ref=base_ref,
                pr_number=pr_number,
                event=event,
                force_all=force,
            )
        )

        console.print_job_summary(
            lint=[f"{j.project_name}: {j.command}" for j in plan.jobs.lint],
            test=[f"{j.project_name}: {j.name}" for j in plan.jobs.test],
        )

        data = plan.jobs.to_dict()
        if github_output:
            write_github_output(
                github_output,
                {
                    "lint-jobs": json.dumps(data["lint"]),
                    "test-jobs": json.dumps(data["test"]),
                },
            )
            console.print_info(f"Wrote job outputs to {github_output}")

        click.echo(json.dumps(data, indent=2))

    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)


@cli.command()
@click.option(
    "--workflow",
    default=None,
    help=f"Workflow file path (defaults to {DEFAULT_WORKFLOW})",
)
@click.option("--base-ref", default="origin/trunk", show_default=True, help="Git ref to diff against")
@click.option("--pr-number", default=None, help="Pull request whose diff should be used instead of --base-ref")
def changes(workflow, base_ref, pr_number):
    """Show which changed files were attributed to which project."""
    console = get_console()
    workflow_path = discover_workflow(workflow)

    try:
        graph = load_graph(workflow_path)
        console.print_changes(get_file_changes(graph, base_ref, pr_number))
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)


if __name__ == "__main__":
    cli()
