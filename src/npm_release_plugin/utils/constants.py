"""Constants for npm publishing."""

# Registry used when nothing else configures one
DEFAULT_NPM_REGISTRY = "https://registry.npmjs.org/"

# Yarn exports this as npm_config_registry for every script it runs
YARN_REGISTRY = "https://registry.yarnpkg.com"

# Public package page on npmjs.com
NPM_PACKAGE_URL = "https://www.npmjs.com/package/{name}"

DEFAULT_DIST_TAG = "latest"

# Release config entries that refer to this plugin
PLUGIN_PATHS = ("@semantic-release/npm", "npm_release_plugin")

NPMRC_FILENAME = ".npmrc"
MANIFEST_FILENAME = "package.json"

# Seconds before the whoami probe gives up
WHOAMI_TIMEOUT = 10
