"""Utility functions and helpers."""

from .manifest import OutputFormat, render_manifest, to_manifest

__all__ = ["OutputFormat", "render_manifest", "to_manifest"]
