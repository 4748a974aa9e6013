"""Registry URL resolution and normalization."""

from collections.abc import Mapping
from dataclasses import dataclass
from urllib.parse import urlsplit, urlunsplit

from .constants import DEFAULT_NPM_REGISTRY, YARN_REGISTRY

_DEFAULT_PORTS = {"http": 80, "https": 443}


def _split(url: str):
    url = url.strip()
    if "://" not in url:
        url = "https://" + url.lstrip("/")
    parts = urlsplit(url)

    host = (parts.hostname or "").lower()
    port = parts.port
    if port is not None and port != _DEFAULT_PORTS.get(parts.scheme):
        host = f"{host}:{port}"

    path = parts.path or "/"
    if not path.endswith("/"):
        path += "/"

    return parts.scheme.lower(), host, path


def registry_url(url: str) -> str:
    """Canonical form of a registry URL: explicit scheme and trailing slash."""
    scheme, host, path = _split(url)
    return urlunsplit((scheme, host, path, "", ""))


def normalize_registry(url: str) -> str:
    """Protocol-less form used to compare registries.

    ``https://Registry.example.com`` and ``registry.example.com/`` both give
    ``registry.example.com/``.
    """
    _, host, path = _split(url)
    return f"{host}{path}"


def nerf_dart(url: str) -> str:
    """Auth key npm clients use for a registry, e.g. ``//registry.npmjs.org/``."""
    return f"//{normalize_registry(url)}"


def same_registry(first: str, second: str) -> bool:
    return normalize_registry(first) == normalize_registry(second)


def get_scope(name: str | None) -> str | None:
    """Return the ``@scope`` part of a scoped package name, if any."""
    if name and name.startswith("@") and "/" in name:
        return name.split("/", 1)[0]
    return None


def scope_registry_key(scope: str | None) -> str | None:
    """The ``@scope:registry`` .npmrc key that routes a scope to a registry."""
    return f"{scope}:registry" if scope else None


@dataclass(frozen=True)
class RegistryConfig:
    """The registry a package is published to, plus the package scope."""

    registry: str
    scope: str | None = None

    @property
    def normalized(self) -> str:
        return normalize_registry(self.registry)

    @property
    def auth_key(self) -> str:
        """Key under which auth for this registry is stored in .npmrc."""
        return nerf_dart(self.registry)

    def is_default(self, default_registry: str) -> bool:
        return same_registry(self.registry, default_registry)


def get_default_registry(default_override: str | None = None) -> str:
    """The well-known default registry, honoring DEFAULT_NPM_REGISTRY."""
    return registry_url(default_override or DEFAULT_NPM_REGISTRY)


def resolve_registry(
    publish_registry: str | None,
    package_name: str | None,
    npmrc: Mapping[str, str] | None = None,
    config_registry: str | None = None,
    default_override: str | None = None,
) -> RegistryConfig:
    """Determine the registry a package is published to.

    Precedence:
    1. ``npm_config_registry`` set by the package manager (ignored when it is
       the Yarn default that yarn exports for every script)
    2. ``publishConfig.registry`` from package.json
    3. ``@scope:registry`` then ``registry`` from .npmrc
    4. ``DEFAULT_NPM_REGISTRY``
    5. the public npm registry

    Args:
        publish_registry: publishConfig.registry from the manifest
        package_name: Package name, used for the scope lookup
        npmrc: Merged .npmrc settings
        config_registry: Value of the npm_config_registry env variable
        default_override: Value of the DEFAULT_NPM_REGISTRY env variable

    Returns:
        RegistryConfig for the effective registry
    """
    scope = get_scope(package_name)
    scope_key = scope_registry_key(scope)
    npmrc = npmrc or {}

    if config_registry and not same_registry(config_registry, YARN_REGISTRY):
        registry = config_registry
    elif publish_registry:
        registry = publish_registry
    elif scope_key and npmrc.get(scope_key):
        registry = npmrc[scope_key]
    elif npmrc.get("registry"):
        registry = npmrc["registry"]
    else:
        registry = get_default_registry(default_override)

    return RegistryConfig(registry=registry_url(registry), scope=scope)
