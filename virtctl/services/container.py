"""Dependency injection container for services."""

from dependency_injector import containers, providers

from virtctl.config import Settings
from virtctl.services.expose_service import ExposeService
from virtctl.services.kubernetes_service import KubernetesService


class ServiceContainer(containers.DeclarativeContainer):
    """Container for service dependency injection."""

    config = providers.Dependency(instance_of=Settings)

    # Kubernetes service - loads client configuration on first use
    kubernetes_service = providers.Singleton(
        KubernetesService,
        settings=config,
    )

    expose_service = providers.Factory(
        ExposeService,
        kubernetes_service=kubernetes_service,
    )
