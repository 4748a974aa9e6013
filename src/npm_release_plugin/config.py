"""
Configuration for the plugin: options, release context and environment settings.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from .utils.constants import NPMRC_FILENAME, PLUGIN_PATHS
from .utils.log import get_logger

# Referenced by name from the .npmrc lines written for auth, so only the
# exact upper-case variable counts
_CREDENTIAL_FIELDS = ("npm_token", "npm_username", "npm_password", "npm_email")

# Option name -> accepted keys in a release config
_OPTION_KEYS = {
    "npm_publish": ("npmPublish", "npm_publish"),
    "tarball_dir": ("tarballDir", "tarball_dir"),
    "pkg_root": ("pkgRoot", "pkg_root"),
}


class NpmSettings(BaseSettings):
    """Environment variables read by the plugin."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
    )

    npm_token: SecretStr | None = None
    npm_username: str | None = None
    npm_password: SecretStr | None = None
    npm_email: str | None = None

    # Set by npm/yarn when running package scripts
    npm_config_registry: str | None = None
    npm_config_userconfig: Path | None = None

    # Registry treated as the well-known default
    default_npm_registry: str | None = None

    npm_release_log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Mapping[str, str]) -> "NpmSettings":
        """Build settings from an explicit environment mapping only."""
        lowered = {key.lower(): value for key, value in env.items()}
        values = {
            name: env.get(name.upper()) if name in _CREDENTIAL_FIELDS else lowered.get(name)
            for name in cls.model_fields
        }
        values = {name: value for name, value in values.items() if value not in (None, "")}
        # Pass defaults explicitly so the process environment is not consulted
        for name in cls.model_fields:
            values.setdefault(name, cls.model_fields[name].default)
        return cls(**values)

    @property
    def token(self) -> str | None:
        return self.npm_token.get_secret_value() if self.npm_token else None

    @property
    def password(self) -> str | None:
        return self.npm_password.get_secret_value() if self.npm_password else None

    @property
    def has_user_credentials(self) -> bool:
        return bool(self.npm_username and self.password and self.npm_email)

    def userconfig_path(self, home: Path | None = None) -> Path:
        if self.npm_config_userconfig:
            return Path(self.npm_config_userconfig).expanduser()
        return (home or Path.home()) / NPMRC_FILENAME


@dataclass
class PluginOptions:
    """Options from the plugin's release configuration, not yet validated."""

    npm_publish: Any = None
    tarball_dir: Any = None
    pkg_root: Any = None

    @classmethod
    def from_config(cls, config: Mapping[str, Any] | None) -> "PluginOptions":
        config = config or {}
        values = {}
        for name, keys in _OPTION_KEYS.items():
            values[name] = next((config[key] for key in keys if key in config), None)
        return cls(**values)

    def merge_defaults(self, other: "PluginOptions") -> "PluginOptions":
        """Fill unset options from ``other``."""
        return PluginOptions(
            npm_publish=self.npm_publish if self.npm_publish is not None else other.npm_publish,
            tarball_dir=self.tarball_dir if self.tarball_dir is not None else other.tarball_dir,
            pkg_root=self.pkg_root if self.pkg_root is not None else other.pkg_root,
        )

    @property
    def publish_enabled(self) -> bool:
        return self.npm_publish is not False


@dataclass
class NextRelease:
    """The release being made."""

    version: str


@dataclass
class ReleaseContext:
    """What the release orchestrator hands to each lifecycle step."""

    options: dict[str, Any] = field(default_factory=dict)
    logger: Any = None
    next_release: NextRelease | None = None
    cwd: Path = field(default_factory=Path.cwd)
    env: dict[str, str] = field(default_factory=lambda: dict(os.environ))

    def __post_init__(self):
        self.cwd = Path(self.cwd)
        if self.logger is None:
            self.logger = get_logger("npm-release")
        if isinstance(self.next_release, Mapping):
            self.next_release = NextRelease(**self.next_release)

    @property
    def settings(self) -> NpmSettings:
        return NpmSettings.from_env(self.env)

    @property
    def version(self) -> str:
        if self.next_release is None:
            raise ValueError("No next release version in the release context")
        return self.next_release.version


def publish_plugin_options(release_options: Mapping[str, Any] | None) -> PluginOptions:
    """Options configured for this plugin in the ``publish`` step, if any."""
    publish = (release_options or {}).get("publish")
    if publish is None:
        return PluginOptions()
    if isinstance(publish, (str, Mapping)):
        publish = [publish]

    for entry in publish:
        if isinstance(entry, Mapping) and entry.get("path") in PLUGIN_PATHS:
            return PluginOptions.from_config(entry)

    return PluginOptions()
