"""
craft — CLI entrypoint.

Usage:
    craft <project-directory> <template-url>
    craft my-react-app https://github.com/cebroker/react-foundation
    python -m craft.main --help
"""

from __future__ import annotations

import json
import os
import sys
from typing import Any

import click

from craft import __version__
from craft.core.models.action import Receipt
from craft.core.observability.logging_config import resolve_level, setup_logging

PROG_NAME = "craft"
EXAMPLE_PROJECT = "my-react-app"
EXAMPLE_TEMPLATE = "https://github.com/cebroker/react-foundation"

_STAGE_TITLES = {
    "delete": "Deleting files...",
    "copy": "Copying files...",
    "install": "Installing template packages...",
}


def _print_usage() -> None:
    """What to type, for runs missing an argument."""
    click.echo("Please specify the project directory and template url:", err=True)
    click.echo(
        f"  {click.style(PROG_NAME, fg='cyan')} "
        f"{click.style('<project-directory>', fg='green')} "
        f"{click.style('<template-url>', fg='yellow')}",
        err=True,
    )
    click.echo(err=True)
    click.echo("For example:", err=True)
    click.echo(
        f"  {click.style(PROG_NAME, fg='cyan')} "
        f"{click.style(EXAMPLE_PROJECT, fg='green')} "
        f"{click.style(EXAMPLE_TEMPLATE, fg='yellow')}",
        err=True,
    )
    click.echo(err=True)
    click.echo(f"Run {click.style(f'{PROG_NAME} --help', fg='cyan')} to see all options.", err=True)


def _print_missing_generator() -> None:
    click.secho("No create-react-app installation has been detected.", fg="red", err=True)
    click.echo("Please install create-react-app to continue.", err=True)
    click.echo(err=True)
    click.echo(
        f"  {click.style('npm', fg='cyan')} install -g {click.style('create-react-app', bold=True)}",
        err=True,
    )


def _print_receipt(marker: str, receipt: Receipt) -> None:
    if receipt.failed:
        click.secho(f"! {receipt.label}", fg="red")
    elif receipt.status == "skipped":
        click.secho(f"{marker} {receipt.label}", dim=True)
    else:
        click.echo(f"{marker} {receipt.label}")


def _narrate(event: str, payload: Any) -> None:
    """Progress callback for the apply-template use case."""
    if event == "stage":
        if payload == "template":
            click.echo()
            click.secho("Applying custom template...", fg="magenta")
            click.echo()
        elif payload in _STAGE_TITLES:
            click.echo()
            click.echo(_STAGE_TITLES[payload])
    elif event == "config":
        click.echo(f"Using craft configuration from {payload}.")
    elif event == "deleted":
        _print_receipt("-", payload)
    elif event == "copied":
        _print_receipt("+", payload)


def _print_dry_run_packages(manifest: Receipt | None) -> None:
    packages = manifest.metadata.get("packages") if manifest else None
    if not packages:
        return
    click.echo()
    if manifest.metadata.get("generated"):
        click.echo("[dry-run] Would install template packages:")
    else:
        click.echo("[dry-run] Would install template packages the new app does not already provide:")
    for name, version in packages.items():
        click.echo(f"  {name}@{version}")


@click.command(options_metavar="[options]")
@click.version_option(version=__version__, prog_name=PROG_NAME)
@click.argument("project_directory", metavar="<project-directory>", required=False)
@click.argument("template_url", metavar="<template-url>", required=False)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Clone the template and show the plan without touching the project.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output the run result as JSON.")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
def cli(
    project_directory: str | None,
    template_url: str | None,
    dry_run: bool,
    as_json: bool,
    verbose: bool,
    quiet: bool,
    debug: bool,
) -> None:
    """Create a React app and apply a custom template repository on top."""
    setup_logging(
        level=resolve_level(debug, verbose, quiet, os.environ.get("CRAFT_LOG_LEVEL")),
        log_file=os.environ.get("CRAFT_LOG_FILE"),
        log_file_level=os.environ.get("CRAFT_LOG_FILE_LEVEL"),
    )

    if not project_directory or not template_url:
        _print_usage()
        sys.exit(1)

    from craft.adapters.languages.node import NodeAdapter

    use_npx = NodeAdapter.npx_available()
    if not use_npx and not NodeAdapter.generator_installed():
        _print_missing_generator()
        sys.exit(1)

    from craft.core.use_cases.apply_template import apply_template

    if dry_run and not as_json:
        click.secho("[dry-run] The project will not be modified.", fg="yellow")

    result = apply_template(
        project_directory,
        template_url,
        dry_run=dry_run,
        use_npx=use_npx,
        on_progress=None if as_json else _narrate,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if not result.ok:
            sys.exit(1)
        return

    if result.ok and dry_run:
        _print_dry_run_packages(result.manifest)
        click.echo()
        click.secho("[dry-run] Template plan complete, nothing was changed.", fg="green")
        return
    click.echo()
    if result.ok:
        click.secho("Template applied successfully!", fg="green")
        return

    click.echo("Aborting installation.")
    if result.failed_command:
        click.echo(f"  {click.style(result.failed_command, fg='cyan')} has failed.")
    else:
        click.secho("Unexpected error. Please report it as a bug:", fg="red")
        click.echo(result.error)
    click.echo()
    sys.exit(1)


if __name__ == "__main__":
    cli()
