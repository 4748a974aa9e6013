"""Release lifecycle commands."""

import os
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from ..config import NextRelease, NpmSettings, ReleaseContext
from ..errors import AggregatePluginError, PluginError
from ..plugin import NpmPlugin
from ..publish import ReleaseArtifact
from ..utils.log import configure_logging
from ..utils.shell import CommandError

console = Console()

# Shared option declarations
NpmPublishOption = typer.Option(True, "--npm-publish/--no-npm-publish", help="Publish to the registry")
TarballDirOption = typer.Option(None, "--tarball-dir", help="Directory to write the packed tarball to")
PkgRootOption = typer.Option(None, "--pkg-root", help="Directory holding package.json")
CwdOption = typer.Option(None, "--cwd", help="Working directory (default: current directory)")


def _plugin_config(npm_publish: bool, tarball_dir: str | None, pkg_root: str | None) -> dict:
    config = {"npmPublish": npm_publish, "tarballDir": tarball_dir, "pkgRoot": pkg_root}
    return {key: value for key, value in config.items() if value is not None}


def _context(version: str | None, cwd: Path | None) -> ReleaseContext:
    env = dict(os.environ)
    configure_logging(level=NpmSettings.from_env(env).npm_release_log_level)
    return ReleaseContext(
        next_release=NextRelease(version) if version else None,
        cwd=cwd or Path.cwd(),
        env=env,
    )


def _print_artifact(artifact: ReleaseArtifact | None) -> None:
    if artifact is None:
        console.print("[yellow]Nothing published to the registry[/yellow]")
        return
    console.print(f"[green]✓ Published {artifact.name}[/green]")
    if artifact.url:
        console.print(f"Package URL: [link={artifact.url}]{artifact.url}[/link]")


@contextmanager
def _report_errors() -> Iterator[None]:
    """Print plugin and command failures, then exit non-zero."""
    try:
        yield
    except AggregatePluginError as e:
        for error in e:
            console.print(f"[red]✗ {error.code}: {escape(error.message)}[/red]")
            if error.details:
                console.print(f"  [dim]{escape(error.details)}[/dim]")
        raise typer.Exit(1)
    except PluginError as e:
        console.print(f"[red]✗ {e.code}: {escape(e.message)}[/red]")
        raise typer.Exit(1)
    except CommandError as e:
        console.print(f"[red]✗ {escape(str(e))}[/red]")
        raise typer.Exit(1)


def _run(step: Callable[[], None], description: str) -> None:
    with _report_errors():
        step()
    console.print(f"[green]✓ {description}[/green]")


def verify(
    npm_publish: bool = NpmPublishOption,
    tarball_dir: str | None = TarballDirOption,
    pkg_root: str | None = PkgRootOption,
    cwd: Path | None = CwdOption,
):
    """Verify options, package.json and registry credentials."""
    plugin = NpmPlugin()
    context = _context(None, cwd)
    config = _plugin_config(npm_publish, tarball_dir, pkg_root)
    _run(lambda: plugin.verify_conditions(config, context), "npm release conditions verified")


def prepare(
    version: str = typer.Argument(..., help="Version being released"),
    npm_publish: bool = NpmPublishOption,
    tarball_dir: str | None = TarballDirOption,
    pkg_root: str | None = PkgRootOption,
    cwd: Path | None = CwdOption,
):
    """Write the release version to package.json."""
    plugin = NpmPlugin()
    context = _context(version, cwd)
    config = _plugin_config(npm_publish, tarball_dir, pkg_root)
    _run(lambda: plugin.prepare(config, context), f"Prepared version {version}")


def publish(
    version: str = typer.Argument(..., help="Version being released"),
    npm_publish: bool = NpmPublishOption,
    tarball_dir: str | None = TarballDirOption,
    pkg_root: str | None = PkgRootOption,
    cwd: Path | None = CwdOption,
):
    """Prepare and publish the package."""
    plugin = NpmPlugin()
    context = _context(version, cwd)
    config = _plugin_config(npm_publish, tarball_dir, pkg_root)

    with _report_errors():
        artifact = plugin.publish(config, context)
    _print_artifact(artifact)


def release(
    version: str = typer.Argument(..., help="Version being released"),
    npm_publish: bool = NpmPublishOption,
    tarball_dir: str | None = TarballDirOption,
    pkg_root: str | None = PkgRootOption,
    cwd: Path | None = CwdOption,
):
    """Verify, prepare and publish in one run."""
    plugin = NpmPlugin()
    context = _context(version, cwd)
    config = _plugin_config(npm_publish, tarball_dir, pkg_root)

    console.print(f"[bold]Releasing version {version} to npm[/bold]\n")
    _run(lambda: plugin.verify_conditions(config, context), "Conditions verified")
    _run(lambda: plugin.prepare(config, context), f"Wrote version {version} to package.json")

    with _report_errors():
        artifact = plugin.publish(config, context)
    _print_artifact(artifact)
