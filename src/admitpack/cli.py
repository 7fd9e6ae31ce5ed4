"""admitpack CLI - build admission policy bundles and manifests."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from admitpack import __version__
from admitpack.bundler import bundle as run_bundler
from admitpack.bundler import load_bundle_file
from admitpack.config import BuildConfig, load_build_config
from admitpack.errors import AdmitpackError
from admitpack.packager import package as run_packager
from admitpack.packager import read_bundle_from_manifest
from admitpack.pipeline import build as run_build
from admitpack.pipeline import write_report
from admitpack.policy import run_policy
from admitpack.scaffold import init_project

cli = typer.Typer(
    name="admitpack",
    help="admitpack - package admission policies into deployable manifests",
    no_args_is_help=True,
)
console = Console(soft_wrap=True)
err_console = Console(stderr=True, soft_wrap=True)


def _configure_logging(verbose: bool) -> None:
    logger = logging.getLogger("admitpack")
    logger.handlers[:] = [RichHandler(console=err_console, show_path=False)]
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _fail(exc: Exception) -> typer.Exit:
    err_console.print(f"[red]error:[/red] {escape(str(exc))}", highlight=False)
    return typer.Exit(1)


def _load_config(ctx: typer.Context) -> BuildConfig:
    options = ctx.obj or {}
    return load_build_config(options.get("root"), options.get("config"))


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"admitpack {__version__}")
        raise typer.Exit()


@cli.callback()
def main(
    ctx: typer.Context,
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Build config file (defaults to $ADMITPACK_CONFIG or ./admitpack.yaml).",
    ),
    root: Path | None = typer.Option(
        None,
        "--root",
        help="Project root used when no config file exists (defaults to cwd).",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit."
    ),
) -> None:
    """Bundle a policy module and package it into manifests."""
    _configure_logging(verbose)
    ctx.obj = {"config": config, "root": root}


@cli.command()
def init(
    directory: Path = typer.Argument(Path("."), help="Project directory to scaffold."),
    name: str | None = typer.Option(None, "--name", help="Policy name (defaults to directory name)."),
) -> None:
    """Scaffold a policy project. Existing files are never overwritten."""
    created, skipped = init_project(directory, name)
    for path in created:
        console.print(f"[green]created[/green] {path}")
    for path in skipped:
        console.print(f"[yellow]exists[/yellow]  {path}")


@cli.command()
def bundle(ctx: typer.Context) -> None:
    """Compile the policy entry module into a single bundle script."""
    try:
        config = _load_config(ctx)
        result = run_bundler(config.bundler)
    except AdmitpackError as exc:
        raise _fail(exc) from exc

    console.print(f"[green]Bundle written to {result.path}[/green]")
    console.print(f"exports: {', '.join(result.exports)}")
    console.print(f"embedded modules: {len(result.modules)}  size: {result.size} bytes")


@cli.command()
def package(ctx: typer.Context) -> None:
    """Compress and encode an existing bundle into the manifest templates."""
    try:
        config = _load_config(ctx)
        result = run_packager(config.packager)
        write_report(config, result)
    except AdmitpackError as exc:
        raise _fail(exc) from exc

    console.print(f"[green]Manifests written to {result.policy_manifest.parent}[/green]")
    console.print(f"payload: {result.payload_size} bytes (bundle {result.bundle_size} bytes)")


@cli.command()
def build(ctx: typer.Context) -> None:
    """Bundle the policy, then package it into manifests."""
    try:
        config = _load_config(ctx)
        result = run_build(config)
    except AdmitpackError as exc:
        raise _fail(exc) from exc

    console.print(f"[green]Bundle written to {result.bundle.path}[/green]")
    console.print(f"[green]Manifest written to {result.package.policy_manifest}[/green]")
    console.print(f"[green]Manifest written to {result.package.bundle_manifest}[/green]")
    console.print(f"exports: {', '.join(result.bundle.exports)}  payload: {result.package.payload_size} bytes")


@cli.command()
def decode(
    manifest: Path = typer.Argument(..., help="Bundle manifest to decode."),
    out: Path | None = typer.Option(None, "--out", "-o", help="Write the bundle here instead of stdout."),
) -> None:
    """Extract the bundle script from a packaged manifest."""
    try:
        data = read_bundle_from_manifest(manifest)
    except AdmitpackError as exc:
        raise _fail(exc) from exc

    if out is None:
        typer.echo(data.decode("utf-8"), nl=False)
        return
    out.parent.mkdir(parents=True, exist_ok=True)
    with out.open("wb") as handle:
        handle.write(data)
    console.print(f"[green]Bundle written to {out}[/green]")


def _read_request(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if path.suffix == ".json":
        return json.loads(text)
    return yaml.safe_load(text)


@cli.command("eval")
def eval_request(
    ctx: typer.Context,
    request: Path = typer.Argument(..., help="AdmissionRequest or AdmissionReview (YAML or JSON)."),
    function: str | None = typer.Option(
        None, "--function", "-f", help="Exported function to run (required when the bundle exports several)."
    ),
    bundle_path: Path | None = typer.Option(
        None, "--bundle", "-b", help="Bundle script (defaults to the configured bundle path)."
    ),
) -> None:
    """Evaluate a bundled policy function against a request document."""
    try:
        path = bundle_path or _load_config(ctx).packager.bundle
        exports = load_bundle_file(path)
        if function is None:
            if len(exports) != 1:
                raise AdmitpackError(
                    f"bundle exports {', '.join(sorted(exports))}; choose one with --function"
                )
            function = next(iter(exports))
        if function not in exports:
            raise AdmitpackError(f"bundle does not export {function!r}")
        if not request.is_file():
            raise AdmitpackError(f"request file not found: {request}")
        try:
            document = _read_request(request)
        except (UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as exc:
            raise AdmitpackError(f"cannot parse request {request}: {exc}") from exc
        violations = run_policy(exports[function], document)
    except AdmitpackError as exc:
        raise _fail(exc) from exc

    if not violations:
        console.print(f"[green]{function}: allowed[/green]")
        return
    console.print(f"[red]{function}: {len(violations)} violation(s)[/red]")
    for violation in violations:
        console.print(f"  - {violation}", markup=False, highlight=False)
    raise typer.Exit(1)


if __name__ == "__main__":
    cli()
