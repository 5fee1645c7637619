"""Generate multi-document Kubernetes YAML bundles from editable configuration records."""

__version__ = "0.1.0"
