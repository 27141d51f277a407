"""kubedrift -- dry-run change diffing for GitOps-managed Kubernetes objects."""

__version__ = "0.1.0"
