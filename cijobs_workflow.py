# cijobs_workflow.py
# Example project graph for a WooCommerce-style monorepo.
from __future__ import annotations

from cijobs.dsl import lint, project, test


def graph():
    block_library = project(
        "@woocommerce/block-library",
        "plugins/woocommerce/client/blocks",
        jobs=[
            lint(["src/**", "tests/**"], "lint:js"),
            test("Blocks JS unit tests", "src/**", "test:js", test_type="unit"),
        ],
    )

    admin = project(
        "@woocommerce/admin-library",
        "plugins/woocommerce/client/admin",
        jobs=[lint("client/**", "lint:lang:js")],
    )

    plugin = project(
        "@woocommerce/plugin-woocommerce",
        "plugins/woocommerce",
        block_library,
        admin,
        jobs=[
            lint(["src/**", "includes/**"], "lint:changes:branch <baseRef>"),
            test(
                "PHP: 8.1 WP: latest",
                ["src/**", "includes/**", "tests/php/**"],
                "test:php:env",
                test_type="unit",
                start="env:test",
                wp_version="latest",
                php_version="8.1",
            ),
            test(
                "Blocks e2e tests",
                "client/blocks/tests/e2e/**",
                "test:e2e:blocks",
                test_type="e2e",
                events=["pull_request"],
                shards=["--shard=1/3", "--shard=2/3", "--shard=3/3"],
                start="env:start:blocks",
                only_for_dependencies=["@woocommerce/block-library"],
            ),
            test(
                "Core e2e tests (WP pre-release)",
                "tests/e2e-pw/**",
                "test:e2e",
                test_type="e2e",
                events=["schedule"],
                start="env:start",
                wp_version="prerelease",
            ),
        ],
    )

    return project("woocommerce-monorepo", "", plugin)
