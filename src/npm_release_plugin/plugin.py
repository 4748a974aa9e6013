"""
Lifecycle entry points called by the release orchestrator.

``verify_conditions`` runs before anything is released, ``prepare`` writes the
release version into package.json, and ``publish`` pushes the package to the
registry. Credentials are written to ``.npmrc`` once per process and reused by
the later steps.
"""

from collections.abc import Mapping
from typing import Any

from .auth import WhoamiFetcher, fetch_whoami, get_registry, verify_auth
from .config import PluginOptions, ReleaseContext, publish_plugin_options
from .errors import AggregatePluginError, PluginError
from .prepare import package_root, prepare_npm
from .publish import ReleaseArtifact, publish_npm
from .utils.package import Manifest, read_manifest
from .utils.shell import CommandRunner
from .verify_config import verify_config


class NpmPlugin:
    """The npm release plugin, holding the state shared between lifecycle steps."""

    def __init__(self, runner: CommandRunner | None = None, whoami: WhoamiFetcher = fetch_whoami):
        """
        Args:
            runner: Runs npm; anything with CommandRunner's ``run`` signature
            whoami: Probes the registry for the owner of a token
        """
        self.runner = runner or CommandRunner()
        self.whoami = whoami
        self.verified = False
        self.prepared = False

    def _check(self, options: PluginOptions, context: ReleaseContext, check_auth: bool) -> Manifest:
        """Validate options and package.json, then set up auth if asked.

        Raises:
            AggregatePluginError: With every problem found, in order
        """
        errors: list[PluginError] = verify_config(options)
        manifest = None

        try:
            manifest = read_manifest(package_root(options, context))
            if check_auth and options.publish_enabled and not manifest.private:
                verify_auth(manifest, context, self.whoami)
        except PluginError as e:
            errors.append(e)

        if errors:
            raise AggregatePluginError(errors)

        return manifest

    def verify_conditions(self, plugin_config: Mapping[str, Any] | None, context: ReleaseContext) -> None:
        """Check options, package.json and registry credentials before a release.

        Options missing from ``plugin_config`` are taken from this plugin's
        entry in the ``publish`` step, so a broken publish configuration stops
        the release before anything happens.
        """
        options = PluginOptions.from_config(plugin_config).merge_defaults(
            publish_plugin_options(context.options)
        )
        self._check(options, context, check_auth=True)
        self.verified = True

    def prepare(self, plugin_config: Mapping[str, Any] | None, context: ReleaseContext) -> None:
        """Write the release version into package.json, packing it if configured."""
        options = PluginOptions.from_config(plugin_config)
        self._check(options, context, check_auth=not self.verified)
        self.verified = True

        prepare_npm(options, context.version, context, self.runner)
        self.prepared = True

    def publish(
        self, plugin_config: Mapping[str, Any] | None, context: ReleaseContext
    ) -> ReleaseArtifact | None:
        """Publish the package, preparing it first if ``prepare`` did not run.

        Returns:
            The release artifact, or None when publishing is skipped
        """
        options = PluginOptions.from_config(plugin_config)
        self._check(options, context, check_auth=not self.verified)
        self.verified = True

        if not self.prepared:
            prepare_npm(options, context.version, context, self.runner)
            self.prepared = True

        # Reload in case the version was just written
        manifest = read_manifest(package_root(options, context))
        registry = get_registry(manifest, context)
        return publish_npm(options, manifest, registry, context.version, context, self.runner)


_plugin: NpmPlugin | None = None


def get_plugin() -> NpmPlugin:
    """Process-wide plugin instance used by the module-level entry points."""
    global _plugin
    if _plugin is None:
        _plugin = NpmPlugin()
    return _plugin


def reset_plugin() -> None:
    """Forget verification and preparation state."""
    global _plugin
    _plugin = None


def verify_conditions(plugin_config: Mapping[str, Any] | None, context: ReleaseContext) -> None:
    get_plugin().verify_conditions(plugin_config, context)


def prepare(plugin_config: Mapping[str, Any] | None, context: ReleaseContext) -> None:
    get_plugin().prepare(plugin_config, context)


def publish(plugin_config: Mapping[str, Any] | None, context: ReleaseContext) -> ReleaseArtifact | None:
    return get_plugin().publish(plugin_config, context)
