"""Names and locations shared across the package."""

CURRENT_API_VERSION = "krew.googlecontainertools.github.com/v1alpha2"
PLUGIN_KIND = "Plugin"
MANIFEST_EXTENSION = ".yaml"
KREW_PLUGIN_NAME = "krew"  # plugin name of krew itself

# The upstream plugin index.
DEFAULT_INDEX_URI = "https://github.com/kubernetes-sigs/krew-index.git"
# Index name assumed when a plugin is given without one.
DEFAULT_INDEX_NAME = "default"