#!/usr/bin/env python3
import asyncio
from pathlib import Path
from typing import Optional

import click
import pyperclip
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .commit_message import CommitMessageValidator, strip_comments
from .config import DEFAULT_CONFIG_FILENAME, Config
from .core import CommitHistory, RangeChecker, RangeReport
from .errors import ConfigError
from .models import ValidationResult
from .observers import ConsoleLogObserver, FileLogObserver

EXIT_VALID = 0
EXIT_INVALID = 1
EXIT_ERROR = 2

console = Console()
err_console = Console(stderr=True)


def run_async(coro):
    """Run a coroutine from synchronous CLI code."""
    return asyncio.run(coro)


def load_config(ctx: click.Context, search_dir: Optional[Path] = None) -> Config:
    """Load the configuration, exiting with status 2 when it is invalid."""
    try:
        return Config.load(ctx.obj["config_path"], search_dir=search_dir)
    except ConfigError as e:
        err_console.print(f"[red]Configuration error: {escape(str(e))}[/red]", soft_wrap=True)
        ctx.exit(EXIT_ERROR)


def build_validator(ctx: click.Context, config: Config, **kwargs) -> CommitMessageValidator:
    """Compile the rule set and attach the console and file observers."""
    try:
        validator = CommitMessageValidator.from_config(config, **kwargs)
    except ConfigError as e:
        err_console.print(f"[red]Configuration error: {escape(str(e))}[/red]", soft_wrap=True)
        ctx.exit(EXIT_ERROR)

    validator.add_observer(ConsoleLogObserver(err_console, verbose=ctx.obj["verbose"]))
    log_file = config.get_log_file()
    if log_file:
        validator.add_observer(FileLogObserver(str(log_file)))
    return validator


def print_result(result: ValidationResult) -> None:
    if result.valid:
        style = "green"
    elif result.timed_out:
        style = "yellow"
    else:
        style = "red"
    console.print(f"[{style}]{escape(result.format_report())}[/{style}]", soft_wrap=True)


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Configuration file (defaults to .fast-cc-hooks.yaml, pyproject.toml or ~/.fast-cc/fast-cc-config.yaml)",
)
@click.option("-v", "--verbose", is_flag=True, help="Report every validated and skipped message")
@click.pass_context
def main(ctx: click.Context, config_path: Optional[Path], verbose: bool):
    """
    Validate git commit messages against the Conventional Commits format.

    Policy (allowed types and scopes, subject length, breaking changes, ticket
    references and custom rules) is read from .fast-cc-hooks.yaml in the
    current directory, the [tool.fast-cc-hooks] table of pyproject.toml, or
    the global ~/.fast-cc/fast-cc-config.yaml.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose


@main.command()
@click.argument("message", nargs=-1)
@click.option(
    "-f",
    "--file",
    "message_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Read the message from a file such as .git/COMMIT_EDITMSG",
)
@click.option(
    "--timeout",
    type=click.IntRange(min=1),
    help="Deadline in milliseconds; an expired deadline counts as a failure",
)
@click.pass_context
def validate(ctx: click.Context, message: tuple, message_file: Optional[Path], timeout: Optional[int]):
    """Validate a commit message given as arguments, a file or stdin.

    Exits 0 when the message is valid, 1 when it is invalid or validation
    timed out, and 2 on configuration errors.
    """
    config = load_config(ctx)
    deadline = timeout / 1000 if timeout else None

    with build_validator(ctx, config) as validator:
        if message_file is not None:
            result = validator.validate_file(message_file, deadline)
        elif message:
            result = validator.validate(" ".join(message), deadline)
        else:
            raw = click.get_text_stream("stdin").read()
            result = validator.validate(strip_comments(raw), deadline)

    print_result(result)
    ctx.exit(EXIT_VALID if result.valid else EXIT_INVALID)


def render_report(report: RangeReport, verbose: bool) -> None:
    table = Table(title=f"Commits in {report.rev_range}")
    table.add_column("Commit", style="cyan", no_wrap=True)
    table.add_column("Summary")
    table.add_column("Status", no_wrap=True)
    table.add_column("Violations")

    for check in report.checks:
        result = check.result
        if result.ignored:
            status = "[dim]skipped[/dim]"
        elif result.valid:
            status = "[green]valid[/green]"
        elif result.timed_out:
            status = "[yellow]inconclusive[/yellow]"
        else:
            status = "[red]invalid[/red]"
        if result.valid and not verbose:
            continue
        violations = "\n".join(escape(str(v)) for v in result.violations)
        table.add_row(check.record.short_sha, escape(check.record.summary), status, violations)

    if table.row_count:
        console.print(table)

    console.print(
        f"Checked {report.total} commit(s): {report.passed} passed, {report.failed} failed, "
        f"{report.inconclusive} inconclusive, {report.skipped} skipped",
        soft_wrap=True,
    )


@main.command("check-range")
@click.argument("rev_range", default="HEAD")
@click.option(
    "-p",
    "--path",
    default=".",
    help="Path to git repository (defaults to current directory)",
    type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path),
)
@click.option("-n", "--max-count", type=click.IntRange(min=1), help="Check at most this many commits")
@click.option("--no-merges", is_flag=True, help="Skip merge commits")
@click.option("-w", "--workers", default=4, show_default=True, type=click.IntRange(min=1), help="Messages validated concurrently")
@click.pass_context
def check_range(
    ctx: click.Context,
    rev_range: str,
    path: Path,
    max_count: Optional[int],
    no_merges: bool,
    workers: int,
):
    """Validate every commit message in REV_RANGE (e.g. main..HEAD)."""
    repo_path = path.absolute()
    config = load_config(ctx, search_dir=repo_path)

    try:
        history = CommitHistory(repo_path)
        with build_validator(ctx, config) as validator:
            checker = RangeChecker(history, validator)
            with console.status(f"Validating {escape(rev_range)}..."):
                report = run_async(
                    checker.check(rev_range, max_count=max_count, no_merges=no_merges, max_concurrency=workers)
                )
    except ValueError as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]", soft_wrap=True)
        ctx.exit(EXIT_ERROR)
    except KeyboardInterrupt:
        err_console.print("\n[yellow]Operation cancelled by user[/yellow]")
        raise click.Abort()

    render_report(report, ctx.obj["verbose"])
    ctx.exit(EXIT_VALID if report.ok else EXIT_INVALID)


@main.command()
@click.option(
    "-p",
    "--path",
    "target",
    type=click.Path(dir_okay=False, path_type=Path),
    help=f"Where to write the configuration (defaults to ./{DEFAULT_CONFIG_FILENAME})",
)
@click.option("--enterprise", is_flag=True, help="Use the enterprise preset (fixed scopes, JIRA ticket required)")
@click.option("--force", is_flag=True, help="Overwrite an existing configuration file")
@click.pass_context
def init(ctx: click.Context, target: Optional[Path], enterprise: bool, force: bool):
    """Write a configuration file with default values."""
    target = target or Path(DEFAULT_CONFIG_FILENAME)
    if target.exists() and not force:
        err_console.print(
            f"[yellow]{escape(str(target))} already exists; use --force to overwrite it[/yellow]",
            soft_wrap=True,
        )
        ctx.exit(EXIT_INVALID)

    config = Config.enterprise() if enterprise else Config()
    config.save(target)
    preset = "enterprise" if enterprise else "default"
    console.print(f"[green]Created {preset} configuration:[/green] {escape(str(target))}", soft_wrap=True)


def format_value(value) -> str:
    if isinstance(value, list):
        if not value:
            return "-"
        return ", ".join(str(getattr(item, "name", item)) for item in value)
    if value is None:
        return "None"
    return str(value)


@main.command("config")
@click.option("--copy-path", is_flag=True, help="Copy the config file location to the clipboard")
@click.pass_context
def show_config(ctx: click.Context, copy_path: bool):
    """Display the effective configuration and where it came from."""
    config = load_config(ctx)
    source = config.source

    if copy_path:
        config_path = source or Path.cwd() / DEFAULT_CONFIG_FILENAME
        if not config_path.exists():
            config.save(config_path)
            console.print("[yellow]Created new config file with default values[/yellow]")
        pyperclip.copy(str(config_path))
        console.print(f"[green]Config file location:[/green] {escape(str(config_path))}", soft_wrap=True)
        console.print("[green]Path copied to clipboard![/green]")
        return

    if source is not None:
        console.print(f"[dim]Config file: {escape(str(source))}[/dim]", soft_wrap=True)
    else:
        console.print("[dim]Using default values (no config file found)[/dim]")

    table = Table(title="Current Configuration Settings")
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    for name, value in config:
        table.add_row(name, escape(format_value(value)))
    console.print(table)


@main.command()
def version():
    """Display version information."""
    from .version import display_version_info

    display_version_info(console)


if __name__ == "__main__":
    main()
