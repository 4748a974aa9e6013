"""Prepare step: write the release version and optionally pack a tarball."""

import os
import shutil
from pathlib import Path

from .config import PluginOptions, ReleaseContext
from .utils.package import write_version
from .utils.shell import CommandError, CommandRunner


def _pkg_root(options: PluginOptions) -> str | None:
    """The configured pkg_root, or None when unset or invalid."""
    value = options.pkg_root
    if isinstance(value, os.PathLike):
        value = os.fspath(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def package_root(options: PluginOptions, context: ReleaseContext) -> Path:
    """Absolute package directory, falling back to the working directory."""
    pkg_root = _pkg_root(options)
    return context.cwd / pkg_root if pkg_root else context.cwd


def package_arg(options: PluginOptions) -> str:
    """Package path as handed to npm, relative to the working directory."""
    pkg_root = _pkg_root(options)
    if not pkg_root:
        return "."
    if Path(pkg_root).is_absolute():
        return pkg_root
    return f"./{pkg_root.removeprefix('./')}"


def pack_tarball(
    options: PluginOptions, version: str, context: ReleaseContext, runner: CommandRunner
) -> Path:
    """Run ``npm pack`` and move the archive into ``tarball_dir``.

    Returns:
        Path of the moved archive
    """
    context.logger.info("Creating npm package", version=version)
    result = runner.run("npm", ["pack", package_arg(options)], cwd=context.cwd, env=context.env)

    lines = result.stdout.strip().splitlines()
    if not lines:
        raise CommandError(result.command, result.returncode, result.stdout, "npm pack printed no archive name")
    # npm prints the archive name last
    tarball = lines[-1].strip()
    source = context.cwd / tarball

    target_dir = context.cwd / str(options.tarball_dir).strip()
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / tarball
    if source.resolve() != target.resolve():
        shutil.move(str(source), str(target))

    context.logger.info("Created npm package", tarball=str(target))
    return target


def prepare_npm(
    options: PluginOptions, version: str, context: ReleaseContext, runner: CommandRunner
) -> Path | None:
    """Write ``version`` to package.json and pack it if ``tarball_dir`` is set.

    Returns:
        Path of the packed archive, if one was created
    """
    root = package_root(options, context)
    context.logger.info("Write version to package.json", version=version, path=str(root))
    write_version(root, version)

    if options.tarball_dir:
        return pack_tarball(options, version, context, runner)

    return None
