"""Service layer exports."""

from .expose_service import ExposeService, build_service
from .kubernetes_service import KubernetesService

__all__ = [
    "ExposeService",
    "KubernetesService",
    "build_service",
]
