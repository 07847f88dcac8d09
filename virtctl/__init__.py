"""Command line tooling for exposing KubeVirt virtual machines as services."""

__version__ = "0.1.0"
