"""
Exceptions raised by the npm release plugin.

Every error a release can be blocked by carries a stable ``code`` so that the
release orchestrator can report it; several of them may be raised together
inside an :class:`AggregatePluginError`.
"""

from collections.abc import Iterable, Iterator
from typing import Any


class PluginError(Exception):
    """Base exception for all release-blocking plugin errors."""

    def __init__(self, message: str, code: str, details: str | None = None):
        self.message = message
        self.code = code
        self.details = details
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class InvalidOptionError(PluginError):
    """Raised when a plugin option has the wrong shape."""

    pass


class PackageError(PluginError):
    """Raised when package.json is missing or incomplete."""

    pass


class MissingTokenError(PluginError):
    """Raised when no npm credentials can be resolved for the registry."""

    pass


class InvalidTokenError(PluginError):
    """Raised when the registry rejects the resolved credentials."""

    pass


class AggregatePluginError(Exception):
    """Several plugin errors reported together, in the order they were found."""

    def __init__(self, errors: Iterable[PluginError]):
        self.errors = list(errors)
        super().__init__("\n".join(f"{error.code}: {error.message}" for error in self.errors))

    def __iter__(self) -> Iterator[PluginError]:
        return iter(self.errors)

    def __len__(self) -> int:
        return len(self.errors)

    def __getitem__(self, index: int) -> PluginError:
        return self.errors[index]

    @property
    def codes(self) -> list[str]:
        return [error.code for error in self.errors]


# code -> (exception class, message, details template)
ERROR_DEFINITIONS: dict[str, tuple[type[PluginError], str, str]] = {
    "EINVALIDNPMPUBLISH": (
        InvalidOptionError,
        "Invalid `npmPublish` option.",
        "The `npmPublish` option, if defined, must be a boolean.\n\n"
        "Your configuration for the `npmPublish` option is `{npm_publish!r}`.",
    ),
    "EINVALIDTARBALLDIR": (
        InvalidOptionError,
        "Invalid `tarballDir` option.",
        "The `tarballDir` option, if defined, must be a non-empty string.\n\n"
        "Your configuration for the `tarballDir` option is `{tarball_dir!r}`.",
    ),
    "EINVALIDPKGROOT": (
        InvalidOptionError,
        "Invalid `pkgRoot` option.",
        "The `pkgRoot` option, if defined, must be a non-empty string.\n\n"
        "Your configuration for the `pkgRoot` option is `{pkg_root!r}`.",
    ),
    "ENOPKG": (
        PackageError,
        "Missing `package.json` file.",
        "A `package.json` file must exist at `{path}`.\n\n"
        "Set the `pkgRoot` option to the directory holding the package to publish.",
    ),
    "ENOPKGNAME": (
        PackageError,
        "Missing `name` property in `package.json`.",
        "The `package.json` at `{path}` must have a non-empty `name` property "
        "to be published to an npm registry.",
    ),
    "EINVALIDPKG": (
        PackageError,
        "Invalid `package.json` file.",
        "The `package.json` at `{path}` must hold a JSON object, "
        "and its `publishConfig`, if defined, must be an object.\n\n"
        "Reading it failed with: {reason}",
    ),
    "ENONPMTOKEN": (
        MissingTokenError,
        "No npm token specified.",
        "An npm token must be created and set in the `NPM_TOKEN` environment variable, "
        "or `NPM_USERNAME`, `NPM_PASSWORD` and `NPM_EMAIL` must all be set.\n\n"
        "Please make sure to create credentials allowing to publish to the registry `{registry}`.",
    ),
    "EINVALIDNPMTOKEN": (
        InvalidTokenError,
        "Invalid npm token.",
        "The npm credentials configured in the environment must be valid and allow "
        "to publish to the registry `{registry}`.\n\n"
        "Please regenerate the token and set it again in the `NPM_TOKEN` environment variable.",
    ),
}


def get_error(code: str, **context: Any) -> PluginError:
    """Build the plugin error registered under ``code``.

    Args:
        code: Error code, e.g. ``EINVALIDNPMPUBLISH``
        **context: Values substituted into the details template

    Returns:
        The matching PluginError subclass instance
    """
    error_class, message, details = ERROR_DEFINITIONS[code]
    return error_class(message, code, details.format(**context))
