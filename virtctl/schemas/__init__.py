"""Schema exports."""

from .expose import ExposeParams, Protocol, ResourceKind, ServiceType, parse_target_port

__all__ = [
    "ExposeParams",
    "Protocol",
    "ResourceKind",
    "ServiceType",
    "parse_target_port",
]
