#!/usr/bin/env python3

import sys

import click

from gitstart import __version__
from gitstart.config import load_config
from gitstart.cli_utils import standard_command, add_common_options
from gitstart.exit_codes import UsageError
from gitstart.render import render_migration_table
from gitstart.services.clone_service import CloneOrchestrator


@click.command("gitstart", context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("args", nargs=-1, metavar="SOURCE TARGET")
@click.option("--branch", default=None, help="Name of the branch to create (default: working)")
@click.option("-j", "--jobs", type=click.IntRange(min=1), default=None,
              help="Clone up to N sibling externals concurrently")
@click.option("--table/--no-table", default=None,
              help="Display a summary table (auto-detected by default)")
@click.version_option(version=__version__)
@add_common_options('verbose', 'quiet')
@standard_command
def cli(args, branch, jobs, table, progress, quiet, **kwargs):
    """
    Convert an svn repository into a git svn working copy.

    SOURCE is the svn repository URL, TARGET a directory that must not
    exist yet. svn:externals are cloned into TARGET/.externals and
    symlinked where they were mounted, then a 'working' branch is
    created.

    \b
    Output format:
    - Interactive terminal: summary table
    - Piped/redirected: JSON document describing the migration

    Examples:

    \b
        gitstart http://svn.example.com/repo/trunk repo
        gitstart -v --jobs 4 https://svn.example.com/project/trunk ~/src/project
    """
    if len(args) != 2:
        raise UsageError()

    source, target = args

    config = load_config()
    if branch:
        config["branch"] = branch
    if jobs:
        config["jobs"] = jobs

    orchestrator = CloneOrchestrator(config=config)
    result = orchestrator.run(source, target, progress=progress)
    progress.success(f"{source} is ready in {result.target_path}")

    if table is None:
        table = sys.stdout.isatty()

    if table:
        if not quiet:
            render_migration_table(result)
        return None

    return result.to_dict()


def main():
    cli()

if __name__ == "__main__":
    main()
