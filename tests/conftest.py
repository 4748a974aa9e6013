"""
Pytest configuration and fixtures for npm-release-plugin tests.
"""

import json
import urllib.error
from email.message import Message
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from npm_release_plugin.config import NextRelease, ReleaseContext
from npm_release_plugin.plugin import NpmPlugin, reset_plugin
from npm_release_plugin.utils.shell import CommandError, CommandResult

TEST_REGISTRY = "http://localhost:4873/"

AUTH_ENV = {
    "NPM_USERNAME": "integration",
    "NPM_PASSWORD": "suchsecure",
    "NPM_EMAIL": "integration@test.com",
}

NPM_ENV_VARS = (
    "NPM_TOKEN",
    "NPM_USERNAME",
    "NPM_PASSWORD",
    "NPM_EMAIL",
    "DEFAULT_NPM_REGISTRY",
    "npm_config_registry",
    "NPM_CONFIG_REGISTRY",
    "npm_config_userconfig",
    "NPM_CONFIG_USERCONFIG",
)


class FakeRunner:
    """Stands in for npm: ``pack`` writes a tarball, ``publish`` records the upload."""

    def __init__(self, fail_on: str | None = None):
        self.fail_on = fail_on
        self.calls: list[list[str]] = []
        self.published: list[dict] = []

    def run(self, command, args, cwd=None, env=None):
        cmd = [command, *args]
        self.calls.append(cmd)

        if args[0] == self.fail_on:
            raise CommandError(cmd, 1, stderr="npm ERR! code E500")

        if args[0] == "pack":
            data = self._package(cwd, args[1])
            tarball = f"{data['name'].lstrip('@').replace('/', '-')}-{data['version']}.tgz"
            (Path(cwd) / tarball).write_bytes(b"tarball")
            return CommandResult(cmd, 0, f"npm notice package: {data['name']}\n{tarball}\n", "")

        if args[0] == "publish":
            data = self._package(cwd, args[1])
            self.published.append(
                {
                    "name": data["name"],
                    "version": data["version"],
                    "tag": args[args.index("--tag") + 1],
                    "registry": args[args.index("--registry") + 1],
                }
            )
            return CommandResult(cmd, 0, f"+ {data['name']}@{data['version']}\n", "")

        return CommandResult(cmd, 0, "", "")

    @staticmethod
    def _package(cwd, pkg_arg) -> dict:
        return json.loads((Path(cwd) / pkg_arg / "package.json").read_text())


class FakeWhoami:
    """Stands in for the registry whoami endpoint."""

    def __init__(self, reject: bool = False, error: Exception | None = None):
        self.reject = reject
        self.error = error
        self.calls = []

    def __call__(self, registry, auth):
        self.calls.append((registry, auth))
        if self.error is not None:
            raise self.error
        if self.reject:
            raise urllib.error.HTTPError(f"{registry}-/whoami", 401, "Unauthorized", Message(), None)
        return "integration"


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Clear npm variables from the machine running the tests and work in a temp dir."""
    for var in NPM_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("npm_config_userconfig", str(tmp_path / "home" / ".npmrc"))
    monkeypatch.chdir(tmp_path)
    reset_plugin()
    yield
    reset_plugin()


@pytest.fixture
def logger():
    return MagicMock()


@pytest.fixture
def make_context(tmp_path, logger):
    """Factory for release contexts rooted in the temp dir with an explicit env."""

    def _make(version: str | None = None, options: dict | None = None, env: dict | None = None):
        base_env = {"npm_config_userconfig": str(tmp_path / "home" / ".npmrc")}
        base_env.update(env or {})
        return ReleaseContext(
            options=options or {},
            logger=logger,
            next_release=NextRelease(version) if version else None,
            cwd=tmp_path,
            env=base_env,
        )

    return _make


@pytest.fixture
def write_package(tmp_path):
    """Factory writing a package.json, optionally under a sub-directory."""

    def _write(data: dict, pkg_root: str | None = None) -> Path:
        root = tmp_path / pkg_root if pkg_root else tmp_path
        root.mkdir(parents=True, exist_ok=True)
        path = root / "package.json"
        path.write_text(json.dumps(data, indent=2) + "\n")
        return path

    return _write


@pytest.fixture
def read_package(tmp_path):
    def _read(pkg_root: str | None = None) -> dict:
        root = tmp_path / pkg_root if pkg_root else tmp_path
        return json.loads((root / "package.json").read_text())

    return _read


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def whoami():
    return FakeWhoami()


@pytest.fixture
def plugin(runner, whoami):
    return NpmPlugin(runner=runner, whoami=whoami)
