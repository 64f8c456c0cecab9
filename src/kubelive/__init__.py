"""kubelive - live terminal tables for Kubernetes cluster resources."""

__version__ = "0.1.0"
