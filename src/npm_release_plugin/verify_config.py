"""Validation of the plugin options."""

import os
from collections.abc import Callable
from typing import Any

from .config import PluginOptions
from .errors import PluginError, get_error


def is_boolean(value: Any) -> bool:
    return isinstance(value, bool)


def is_non_empty_string(value: Any) -> bool:
    if isinstance(value, os.PathLike):
        value = os.fspath(value)
    return isinstance(value, str) and bool(value.strip())


# Checked in this order; errors are reported in the same order
VALIDATORS: dict[str, tuple[Callable[[Any], bool], str]] = {
    "npm_publish": (is_boolean, "EINVALIDNPMPUBLISH"),
    "tarball_dir": (is_non_empty_string, "EINVALIDTARBALLDIR"),
    "pkg_root": (is_non_empty_string, "EINVALIDPKGROOT"),
}


def verify_config(options: PluginOptions) -> list[PluginError]:
    """Check every set option against its validator.

    Returns:
        One error per invalid option, empty when all are valid
    """
    errors = []
    values = vars(options)

    for name, (validator, code) in VALIDATORS.items():
        value = values[name]
        if value is not None and not validator(value):
            errors.append(get_error(code, **values))

    return errors
