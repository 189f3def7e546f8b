"""Tests for attributing changed files to projects."""

import re
import subprocess
from unittest.mock import patch

import pytest

from cijobs.dsl import project, test
from cijobs.file_changes import assign_file_changes, changed_files_for_project, get_file_changes
from cijobs.git_facts import git


def _abc_graph():
    return project(
        "project-a",
        "test/project-a",
        project("project-b", "foo/project-b", project("project-c", "bar/project-c")),
        project("project-c", "bar/project-c"),
    )


def _plugin_graph(*jobs):
    return project(
        "@woocommerce/plugin-woocommerce",
        "plugins/woocommerce",
        project("@woocommerce/block-library", "plugins/woocommerce/client/blocks"),
        jobs=list(jobs),
    )


E2E = test("Blocks e2e tests", re.compile(r"^client/blocks/tests/e2e/.*"), "test:e2e:blocks", test_type="e2e")
UNIT = test("Blocks unit tests", re.compile(r"^client/blocks/tests/unit/.*"), "test:unit:blocks", test_type="unit")


class TestChangedFilesForProject:
    def test_strips_project_prefix(self):
        files = ["pkgs/a/x.js", "pkgs/ab/y.js", "pkgs/a/src/z.ts"]
        assert changed_files_for_project("pkgs/a", files) == ["x.js", "src/z.ts"]

    def test_empty_path_owns_everything(self):
        assert changed_files_for_project("", ["a.txt", "b/c.txt"]) == ["a.txt", "b/c.txt"]


class TestAssignFileChanges:
    def test_associates_changes_with_projects(self):
        changes = assign_file_changes(
            _abc_graph(),
            [
                "test/project-a/package.json",
                "foo/project-b/foo.js",
                "bar/project-c/bar.js",
                "baz/project-d/baz.js",
            ],
        )
        assert changes == {
            "project-a": ["package.json"],
            "project-b": ["foo.js"],
            "project-c": ["bar.js"],
        }

    def test_lockfile_means_everything_changed(self):
        changes = assign_file_changes(
            _abc_graph(),
            ["test/project-a/package.json", "pnpm-lock.yaml", "bar/project-c/bar.js"],
        )
        assert changes is True

    def test_orphans_go_to_root_project(self):
        graph = project(
            "root",
            "",
            project("projectA", "pkgs/a", project("projectB", "pkgs/b")),
        )
        changes = assign_file_changes(graph, ["pkgs/a/x.js", "pkgs/b/y.js", "unrelated.txt"])
        assert changes == {
            "projectA": ["x.js"],
            "projectB": ["y.js"],
            "root": ["unrelated.txt"],
        }

    def test_orphans_dropped_without_root_project(self):
        graph = project("projectA", "pkgs/a", project("projectB", "pkgs/b"))
        changes = assign_file_changes(graph, ["pkgs/a/x.js", "pkgs/b/y.js", "unrelated.txt"])
        assert changes == {"projectA": ["x.js"], "projectB": ["y.js"]}

    def test_nested_project_claims_its_own_files(self):
        changes = assign_file_changes(
            _plugin_graph(),
            ["plugins/woocommerce/src/a.php", "plugins/woocommerce/client/blocks/src/block.tsx"],
        )
        assert changes == {
            "@woocommerce/plugin-woocommerce": ["src/a.php"],
            "@woocommerce/block-library": ["src/block.tsx"],
        }

    def test_ci_patterns_claim_nested_files(self):
        changes = assign_file_changes(
            _plugin_graph(E2E),
            [
                "plugins/woocommerce/changelog/fix-123",
                "plugins/woocommerce/client/blocks/tests/e2e/test.spec.ts",
                "plugins/woocommerce/client/blocks/src/block.tsx",
            ],
        )
        assert changes == {
            "@woocommerce/plugin-woocommerce": [
                "changelog/fix-123",
                "client/blocks/tests/e2e/test.spec.ts",
            ],
            "@woocommerce/block-library": [
                "tests/e2e/test.spec.ts",
                "src/block.tsx",
            ],
        }

    def test_ci_patterns_without_match_claim_nothing(self):
        changes = assign_file_changes(
            _plugin_graph(E2E),
            [
                "plugins/woocommerce/client/blocks/src/block.tsx",
                "plugins/woocommerce/client/blocks/assets/style.scss",
            ],
        )
        assert changes == {
            "@woocommerce/block-library": ["src/block.tsx", "assets/style.scss"],
        }
        assert "@woocommerce/plugin-woocommerce" not in changes

    def test_patterns_from_multiple_jobs(self):
        changes = assign_file_changes(
            _plugin_graph(E2E, UNIT),
            [
                "plugins/woocommerce/client/blocks/tests/e2e/test.spec.ts",
                "plugins/woocommerce/client/blocks/tests/unit/test.spec.ts",
                "plugins/woocommerce/client/blocks/src/block.tsx",
            ],
        )
        assert changes["@woocommerce/plugin-woocommerce"] == [
            "client/blocks/tests/e2e/test.spec.ts",
            "client/blocks/tests/unit/test.spec.ts",
        ]
        assert changes["@woocommerce/block-library"] == [
            "tests/e2e/test.spec.ts",
            "tests/unit/test.spec.ts",
            "src/block.tsx",
        ]

    def test_ci_pattern_claim_is_not_duplicated(self):
        graph = project(
            "plugin",
            "plugins/woocommerce",
            jobs=[test("PHP", "src/**", "test:php")],
        )
        changes = assign_file_changes(graph, ["plugins/woocommerce/src/a.php"])
        assert changes == {"plugin": ["src/a.php"]}


class TestGetFileChanges:
    def test_uses_base_ref_diff(self):
        with patch("cijobs.file_changes.diff_file_paths") as mock_diff:
            mock_diff.return_value = ["test/project-a/package.json"]
            changes = get_file_changes(_abc_graph(), "origin/trunk")

        mock_diff.assert_called_once_with("origin/trunk", None)
        assert changes == {"project-a": ["package.json"]}

    def test_git_commands(self):
        with patch.object(git.subprocess, "check_output") as mock_out:
            mock_out.return_value = "foo/project-b/foo.js\n\n"
            changes = get_file_changes(_abc_graph(), "origin/trunk")

        mock_out.assert_called_once_with(
            ["git", "diff", "--name-only", "origin/trunk"], cwd=None, text=True
        )
        assert changes == {"project-b": ["foo.js"]}

    def test_pr_number_uses_gh(self):
        with patch.object(git.subprocess, "check_output") as mock_out:
            mock_out.return_value = "bar/project-c/bar.js\n"
            changes = get_file_changes(_abc_graph(), "origin/trunk", "1234")

        mock_out.assert_called_once_with(
            ["gh", "pr", "diff", "1234", "--name-only"], cwd=None, text=True
        )
        assert changes == {"project-c": ["bar.js"]}

    def test_diff_failure_propagates(self):
        with patch.object(git.subprocess, "check_output") as mock_out:
            mock_out.side_effect = subprocess.CalledProcessError(128, ["git", "diff"])
            with pytest.raises(subprocess.CalledProcessError):
                get_file_changes(_abc_graph(), "does-not-exist")
