"""Render API objects as YAML or JSON manifests."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

import yaml
from kubernetes import client


class OutputFormat(str, Enum):
    YAML = "yaml"
    JSON = "json"


def to_manifest(obj: Any) -> dict[str, Any]:
    """Convert a kubernetes model into its camelCase wire representation."""
    return client.ApiClient().sanitize_for_serialization(obj)


def render_manifest(obj: Any, output: OutputFormat = OutputFormat.YAML) -> str:
    manifest = to_manifest(obj)
    if output is OutputFormat.JSON:
        return json.dumps(manifest, indent=2)
    return yaml.safe_dump(manifest, default_flow_style=False, sort_keys=False).rstrip("\n")


__all__ = ["OutputFormat", "render_manifest", "to_manifest"]
