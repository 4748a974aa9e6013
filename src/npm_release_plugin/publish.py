"""Publish step: push the package to the registry."""

from dataclasses import asdict, dataclass

from .config import PluginOptions, ReleaseContext
from .prepare import package_arg
from .utils.constants import NPM_PACKAGE_URL
from .utils.package import Manifest
from .utils.registry import RegistryConfig, get_default_registry
from .utils.shell import CommandRunner


@dataclass
class ReleaseArtifact:
    """What was published, as reported back to the release orchestrator."""

    name: str
    url: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return asdict(self)


def publish_npm(
    options: PluginOptions,
    manifest: Manifest,
    registry: RegistryConfig,
    version: str,
    context: ReleaseContext,
    runner: CommandRunner,
) -> ReleaseArtifact | None:
    """Run ``npm publish`` unless publishing is disabled or the package is private.

    Returns:
        The release artifact, or None when nothing was published
    """
    logger = context.logger

    if not options.publish_enabled:
        logger.info("Skip publishing to npm registry as npmPublish is false")
        return None
    if manifest.private:
        logger.info("Skip publishing to npm registry as the package is private", package=manifest.name)
        return None

    tag = manifest.publish_tag
    logger.info("Publishing version to npm registry", version=version, registry=registry.registry, tag=tag)

    result = runner.run(
        "npm",
        ["publish", package_arg(options), "--tag", tag, "--registry", registry.registry],
        cwd=context.cwd,
        env=context.env,
    )
    if result.stdout.strip():
        logger.debug("npm publish output", output=result.stdout.strip())

    url = None
    if registry.is_default(get_default_registry(context.settings.default_npm_registry)):
        url = NPM_PACKAGE_URL.format(name=manifest.name)

    logger.info("Published package", package=manifest.name, version=version, tag=tag)
    return ReleaseArtifact(name=f"npm package (@{tag} dist-tag)", url=url)
