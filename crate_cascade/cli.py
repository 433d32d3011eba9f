"""CLI entry point for crate-cascade."""

from __future__ import annotations

import json
import os
from pathlib import Path

import click

from crate_cascade.errors import ReleaseError
from crate_cascade.models import RunOptions
from crate_cascade.pipeline import plan_release, run_release


def _write_output(output_path: str, name: str, value: str) -> None:
    with open(output_path, "a") as fh:
        fh.write(f"{name}={value}\n")


def _env_switch(name: str) -> bool:
    """A CI switch is on whenever its variable is set, whatever the value."""
    return name in os.environ


@click.group()
@click.version_option(package_name="crate-cascade")
def cli() -> None:
    """Publish a Cargo workspace in dependency order, then tag and release it."""


@cli.command(context_settings={"ignore_unknown_options": True})
@click.option(
    "--token",
    envvar="CRATES_IO_TOKEN",
    default=None,
    help="crates.io API token. Publishing is skipped without one.",
)
@click.option(
    "--check-only",
    is_flag=True,
    help="Run `cargo check` instead of building and running tests. "
    "Also enabled by setting CICD_CHECK_ONLY.",
)
@click.option(
    "--skip-docs",
    is_flag=True,
    help="Skip `cargo doc`. Also enabled by setting CICD_SKIP_DOCS.",
)
@click.option(
    "--sudo",
    is_flag=True,
    help="Run the tests with sudo. Also enabled by setting CICD_SUDO.",
)
@click.option(
    "--release-branch",
    default="main",
    show_default=True,
    envvar="CICD_RELEASE_BRANCH",
    help="Only publish from this branch.",
)
@click.option(
    "--dry-run", is_flag=True, help="Print the release plan instead of publishing."
)
@click.argument("cargo_args", nargs=-1, type=click.UNPROCESSED)
def run(
    token: str | None,
    check_only: bool,
    skip_docs: bool,
    sudo: bool,
    release_branch: str,
    dry_run: bool,
    cargo_args: tuple[str, ...],
) -> None:
    """Run the CI pipeline: build, test and publish (usually called from CI).

    Extra CARGO_ARGS are passed to `cargo check` / `cargo test`.
    """
    options = RunOptions(
        token=token or None,
        check_only=check_only or _env_switch("CICD_CHECK_ONLY"),
        skip_docs=skip_docs or _env_switch("CICD_SKIP_DOCS"),
        sudo=sudo or _env_switch("CICD_SUDO"),
        release_branch=release_branch,
        cargo_args=list(cargo_args),
        dry_run=dry_run,
    )
    try:
        run_release(options)
    except ReleaseError as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command()
@click.option(
    "--github-output",
    type=click.Path(dir_okay=False),
    default=None,
    help="Append the plan to this GitHub step output file.",
)
def plan(github_output: str | None) -> None:
    """Print the release plan as JSON without publishing anything."""
    try:
        release_plan = plan_release(Path.cwd())
    except ReleaseError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(release_plan.to_json())
    if github_output:
        packages = [gap.name for gap in release_plan.order]
        _write_output(github_output, "plan", release_plan.model_dump_json())
        _write_output(github_output, "packages", json.dumps(packages))
