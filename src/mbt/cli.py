import json
from collections.abc import Sequence

import click
import yaml

from .errors import MbtError

DESCRIBE_ORDER = ("branch", "commit", "pr", "diff")


class OrderedGroup(click.Group):
    def __init__(
        self,
        *args,
        commands_order: Sequence[str] | None = None,
        **kwargs,
    ) -> None:
        super().__init__(*args, **kwargs)
        self._commands_order = list(commands_order or [])

    def list_commands(self, ctx: click.Context) -> list[str]:
        if not self._commands_order:
            return super().list_commands(ctx)
        ordered = [name for name in self._commands_order if name in self.commands]
        remaining = [
            name
            for name in super().list_commands(ctx)
            if name not in self._commands_order
        ]
        return ordered + remaining


def _resolution_options(func):
    options = [
        click.option(
            "--in",
            "repo_dir",
            default=".",
            show_default=True,
            type=click.Path(file_okay=False),
            help="Repository directory.",
        ),
        click.option("--json", "as_json", is_flag=True, help="Print the manifest as JSON."),
        click.option(
            "--strict/--no-strict",
            default=None,
            help="Fail on the first malformed descriptor instead of skipping it.",
        ),
        click.option(
            "-j",
            "--jobs",
            type=click.IntRange(min=1),
            default=None,
            help="Worker threads used to read descriptors (env: MBT_MANIFEST_JOBS).",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _format_table(manifest) -> str:
    rows = [
        (app.name, app.path or ".", app.version) for app in manifest.applications
    ]
    if not rows:
        return ""
    widths = [max(len(row[i]) for row in rows) for i in range(2)]
    return "\n".join(
        f"{name.ljust(widths[0])}  {path.ljust(widths[1])}  {version}"
        for name, path, version in rows
    )


def _resolve(ctx: click.Context, strategy, *args, strict, jobs):
    config = ctx.obj.get("config", {})
    if strict is None:
        from .runtime import get_strict_descriptors

        strict = get_strict_descriptors(config)
    if jobs is None:
        from .runtime import get_manifest_jobs

        jobs = get_manifest_jobs(config)
    try:
        return strategy(*args, strict=strict, jobs=jobs)
    except MbtError as exc:
        raise click.ClickException(str(exc)) from exc


def _emit(manifest, as_json: bool) -> None:
    for item in manifest.skipped:
        click.echo(f"skipped {item.path or '.'}: {item.reason}", err=True)
    if as_json:
        click.echo(json.dumps(manifest.to_dict(), indent=2, default=str))
        return
    table = _format_table(manifest)
    if table:
        click.echo(table)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("-v", "--verbose", is_flag=True, help="Trace git calls and descriptor resolution.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Config file (default: $XDG_CONFIG_HOME/mbt/config.yaml).",
)
@click.pass_context
def cli(ctx, verbose, config_path):
    """
    mbt - resolve the applications of a monorepo from git history
    """
    from .runtime import read_config, reset_verbose_logging, set_verbose_logging

    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = read_config(config_path)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid config file: {exc}") from exc
    token = set_verbose_logging(verbose)
    ctx.call_on_close(lambda: reset_verbose_logging(token))


@cli.group("describe", cls=OrderedGroup, commands_order=DESCRIBE_ORDER)
def describe():
    """
    List applications at a point in history, or those changed between two.
    """


@describe.command("branch")
@click.argument("branch")
@_resolution_options
@click.pass_context
def describe_branch(ctx, branch, repo_dir, as_json, strict, jobs):
    """Applications at the tip of BRANCH."""
    from .manifest.resolve import manifest_by_branch

    manifest = _resolve(ctx, manifest_by_branch, repo_dir, branch, strict=strict, jobs=jobs)
    _emit(manifest, as_json)


@describe.command("commit")
@click.argument("sha")
@_resolution_options
@click.pass_context
def describe_commit(ctx, sha, repo_dir, as_json, strict, jobs):
    """Applications at commit SHA (full hex)."""
    from .manifest.resolve import manifest_by_sha

    manifest = _resolve(ctx, manifest_by_sha, repo_dir, sha, strict=strict, jobs=jobs)
    _emit(manifest, as_json)


@describe.command("pr")
@click.option("--src", required=True, help="Branch being merged.")
@click.option("--dst", required=True, help="Branch merged into.")
@_resolution_options
@click.pass_context
def describe_pr(ctx, src, dst, repo_dir, as_json, strict, jobs):
    """Applications of SRC changed since it forked from DST."""
    from .manifest.resolve import manifest_by_pr

    manifest = _resolve(ctx, manifest_by_pr, repo_dir, src, dst, strict=strict, jobs=jobs)
    _emit(manifest, as_json)


@describe.command("diff")
@click.option("--from", "from_sha", required=True, help="Base commit sha.")
@click.option("--to", "to_sha", required=True, help="Head commit sha.")
@_resolution_options
@click.pass_context
def describe_diff(ctx, from_sha, to_sha, repo_dir, as_json, strict, jobs):
    """Applications of commit TO changed since its merge base with FROM."""
    from .manifest.resolve import manifest_by_diff

    manifest = _resolve(
        ctx, manifest_by_diff, repo_dir, from_sha, to_sha, strict=strict, jobs=jobs
    )
    _emit(manifest, as_json)


def main():
    cli()


if __name__ == "__main__":
    main()
