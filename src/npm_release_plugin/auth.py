"""Registry authentication: writing .npmrc credentials and checking the token."""

import json
import urllib.error
import urllib.request
from collections.abc import Callable
from pathlib import Path
from urllib.parse import urljoin

from .config import ReleaseContext
from .errors import get_error
from .utils.constants import NPMRC_FILENAME, WHOAMI_TIMEOUT
from .utils.npmrc import AuthInfo, append_npmrc, encode_basic_auth, get_auth_info, load_npmrc
from .utils.package import Manifest
from .utils.registry import RegistryConfig, get_default_registry, resolve_registry, same_registry

WhoamiFetcher = Callable[[str, AuthInfo], str]


def npmrc_paths(context: ReleaseContext) -> list[Path]:
    """The .npmrc files consulted, highest precedence first."""
    return [context.cwd / NPMRC_FILENAME, context.settings.userconfig_path()]


def get_registry(manifest: Manifest, context: ReleaseContext) -> RegistryConfig:
    """Resolve the registry the manifest is published to."""
    settings = context.settings
    return resolve_registry(
        manifest.publish_registry,
        manifest.name,
        npmrc=load_npmrc(npmrc_paths(context), context.env),
        config_registry=settings.npm_config_registry,
        default_override=settings.default_npm_registry,
    )


def is_custom_registry(manifest: Manifest, context: ReleaseContext) -> bool:
    """True when package.json declares a registry other than the default one."""
    if not manifest.publish_registry:
        return False
    default = get_default_registry(context.settings.default_npm_registry)
    return not same_registry(manifest.publish_registry, default)


def set_npmrc_auth(
    registry: RegistryConfig, manifest: Manifest, context: ReleaseContext
) -> AuthInfo | None:
    """Make sure .npmrc holds credentials for the registry.

    Existing credentials are left alone. Otherwise NPM_TOKEN, then
    NPM_USERNAME / NPM_PASSWORD / NPM_EMAIL, are appended to the .npmrc of the
    working directory.

    Returns:
        The credentials in effect, or None when none were found for a custom
        registry declared in package.json

    Raises:
        MissingTokenError: If no credentials can be found
    """
    logger = context.logger
    logger.info("Verify authentication for registry", registry=registry.registry)

    existing = get_auth_info(registry.registry, load_npmrc(npmrc_paths(context), context.env))
    if existing:
        logger.debug("Found existing npm credentials", key=registry.auth_key)
        return existing

    settings = context.settings
    npmrc_file = context.cwd / NPMRC_FILENAME

    if settings.token:
        append_npmrc(npmrc_file, [f"{registry.auth_key}:_authToken = ${{NPM_TOKEN}}"])
        logger.info("Wrote NPM_TOKEN to .npmrc", path=str(npmrc_file))
        return AuthInfo(settings.token, "Bearer")

    if settings.has_user_credentials:
        basic = encode_basic_auth(settings.npm_username, settings.password)
        append_npmrc(
            npmrc_file,
            [f"{registry.auth_key}:_auth = {basic}", "email = ${NPM_EMAIL}"],
        )
        logger.info("Wrote NPM_USERNAME, NPM_PASSWORD and NPM_EMAIL to .npmrc", path=str(npmrc_file))
        return AuthInfo(basic, "Basic")

    if is_custom_registry(manifest, context):
        logger.warning(
            "No npm credentials found, relying on the custom registry configuration",
            registry=registry.registry,
        )
        return None

    raise get_error("ENONPMTOKEN", registry=registry.registry)


def fetch_whoami(registry: str, auth: AuthInfo) -> str:
    """Ask the registry who the credentials belong to.

    Raises:
        urllib.error.HTTPError: If the registry rejects the request
        urllib.error.URLError: If the registry cannot be reached
    """
    request = urllib.request.Request(
        urljoin(registry, "-/whoami"),
        headers={"Authorization": auth.header, "Accept": "application/json"},
    )
    with urllib.request.urlopen(request, timeout=WHOAMI_TIMEOUT) as response:
        body = response.read()

    data = json.loads(body) if body else {}
    return data.get("username", "")


def verify_token(
    registry: RegistryConfig,
    auth: AuthInfo | None,
    context: ReleaseContext,
    whoami: WhoamiFetcher = fetch_whoami,
) -> None:
    """Check the credentials against the registry.

    Only an HTTP error response counts as a rejected token; a registry that
    cannot be reached raises the underlying URLError.

    Raises:
        InvalidTokenError: If the registry rejects the credentials
    """
    if auth is None:
        raise get_error("EINVALIDNPMTOKEN", registry=registry.registry)

    try:
        username = whoami(registry.registry, auth)
    except urllib.error.HTTPError as e:
        context.logger.debug("Registry rejected credentials", status=e.code)
        raise get_error("EINVALIDNPMTOKEN", registry=registry.registry) from e

    context.logger.info("Authenticated to npm registry", username=username, registry=registry.registry)


def verify_auth(
    manifest: Manifest, context: ReleaseContext, whoami: WhoamiFetcher = fetch_whoami
) -> RegistryConfig:
    """Set up registry credentials, then check them on the default registry.

    Third-party registries cannot be probed generically, so only the default
    registry gets the whoami check.
    """
    registry = get_registry(manifest, context)
    auth = set_npmrc_auth(registry, manifest, context)

    default = get_default_registry(context.settings.default_npm_registry)
    if registry.is_default(default):
        verify_token(registry, auth, context, whoami)

    return registry
