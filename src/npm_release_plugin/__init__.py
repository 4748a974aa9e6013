"""
npm-release-plugin: publish npm packages as a step of an automated release.
"""

__version__ = "0.1.0"

from .config import NextRelease, NpmSettings, PluginOptions, ReleaseContext
from .errors import (
    AggregatePluginError,
    InvalidOptionError,
    InvalidTokenError,
    MissingTokenError,
    PackageError,
    PluginError,
)
from .plugin import NpmPlugin, prepare, publish, verify_conditions
from .publish import ReleaseArtifact

__all__ = [
    "NextRelease",
    "NpmSettings",
    "PluginOptions",
    "ReleaseContext",
    "AggregatePluginError",
    "InvalidOptionError",
    "InvalidTokenError",
    "MissingTokenError",
    "PackageError",
    "PluginError",
    "NpmPlugin",
    "ReleaseArtifact",
    "prepare",
    "publish",
    "verify_conditions",
]
