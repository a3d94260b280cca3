"""gem2arch CLI: Arch Linux packages for Ruby gems.

Entry point for the ``gem2arch`` command-line tool.

Commands:
    sync: Create packages for the given gems, or bump every existing one.
    name: Show the Arch package name a gem dependency resolves to.

Usage::

    gem2arch sync                      # bump every ruby-*/PKGBUILD here
    gem2arch sync rails                # create ruby-rails and missing deps
    gem2arch sync rack~2.2 --no-install
    gem2arch name rack "~> 2.2"
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import NoReturn

import click

from gem2arch import __version__
from gem2arch.cli.output import err_console, print_notices, print_run_summary, setup_logging
from gem2arch.config import Config, load_config
from gem2arch.core.index import VersionIndex
from gem2arch.core.naming import NameMapper, parse_request
from gem2arch.core.notices import NoticeLog
from gem2arch.core.resolver import ConstraintResolver
from gem2arch.core.versions import Dependency, Requirement
from gem2arch.exceptions import Gem2ArchError
from gem2arch.registry.rubygems import RubyGemsClient
from gem2arch.workflow import PackageWorkflow, WorkflowOptions


def _fail(exc: Gem2ArchError) -> NoReturn:
    err_console.print(f"[bold red]Error:[/bold red] {exc}")
    sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config", "config_file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to a JSON config file.",
)
@click.option("-v", "--verbose", count=True, help="Increase log verbosity (-v, -vv).")
@click.pass_context
def cli(ctx: click.Context, config_file: str | None, verbose: int) -> None:
    """gem2arch: Generate and maintain Arch Linux PKGBUILDs for Ruby gems.

    A gem ``rack`` becomes the package ``ruby-rack``. When a dependency needs
    an older release line, a versioned package like ``ruby-rack-2.2`` is
    used instead.
    """
    setup_logging(verbose)
    try:
        ctx.obj = load_config(config_file)
    except Gem2ArchError as exc:
        _fail(exc)


@cli.command("sync")
@click.argument("gems", nargs=-1, metavar="[GEM[~VERSION]]...")
@click.option("-g", "--git/--no-git", "use_git", default=True, help="Commit PKGBUILD changes to git.")
@click.option("-i", "--install/--no-install", default=True, help="Build and install changed packages.")
@click.option("-u", "--aur/--no-aur", "upload", default=False, help="Upload changed packages to the AUR.")
@click.option(
    "--workdir",
    type=click.Path(exists=True, file_okay=False),
    default=".",
    help="Directory holding the ruby-*/PKGBUILD trees (default: current).",
)
@click.pass_obj
def sync_command(
    config: Config,
    gems: tuple[str, ...],
    use_git: bool,
    install: bool,
    upload: bool,
    workdir: str,
) -> None:
    """Create packages for GEMS, or bump every existing package.

    With a ``~VERSION`` slot the package is called ``ruby-GEM-VERSION`` and
    built from the newest release matching ``~> VERSION.0``.

    Exit code 0 on success, 1 on a fatal error.
    """
    notices = NoticeLog()
    try:
        requests = [parse_request(g) for g in gems]
        workflow = PackageWorkflow.from_config(
            config,
            Path(workdir).absolute(),
            WorkflowOptions(use_git=use_git, install=install, upload=upload),
            notices,
        )
        processed = workflow.run(requests)
    except Gem2ArchError as exc:
        print_notices(notices)
        _fail(exc)

    print_notices(notices)
    print_run_summary(processed, notices)


@cli.command("name")
@click.argument("gem")
@click.argument("requirement", required=False, default=">= 0")
@click.pass_obj
def name_command(config: Config, gem: str, requirement: str) -> None:
    """Print the Arch package name that satisfies GEM REQUIREMENT.

    Examples:

        gem2arch name rack "~> 2.2"

        gem2arch name nokogiri ">= 1.10, < 1.14"
    """
    try:
        dependency = Dependency(gem, Requirement.parse(requirement))
        client = RubyGemsClient(config.rubygems_url, timeout=config.timeout_s)
        index = VersionIndex.load(client.fetch_versions)
        resolver = ConstraintResolver(index, NameMapper(config.package_prefix))
        click.echo(resolver.package_name(dependency))
    except Gem2ArchError as exc:
        _fail(exc)
