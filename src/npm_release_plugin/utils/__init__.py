"""Utility modules for npm publishing operations."""

from .npmrc import AuthInfo, append_npmrc, get_auth_info, load_npmrc, parse_npmrc
from .package import Manifest, read_manifest, write_version
from .registry import (
    RegistryConfig,
    get_default_registry,
    nerf_dart,
    normalize_registry,
    resolve_registry,
)
from .shell import CommandError, CommandResult, CommandRunner

__all__ = [
    "AuthInfo",
    "append_npmrc",
    "get_auth_info",
    "load_npmrc",
    "parse_npmrc",
    "Manifest",
    "read_manifest",
    "write_version",
    "RegistryConfig",
    "get_default_registry",
    "nerf_dart",
    "normalize_registry",
    "resolve_registry",
    "CommandError",
    "CommandResult",
    "CommandRunner",
]
