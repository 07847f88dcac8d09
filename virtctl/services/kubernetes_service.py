"""Thin wrapper over the Kubernetes API for KubeVirt resources and services."""

from __future__ import annotations

import json
import logging
import os
from typing import Any

from kubernetes import client, config
from kubernetes.client import ApiException
from kubernetes.config.config_exception import ConfigException

from virtctl.config import Settings
from virtctl.consts import DEFAULT_NAMESPACE, KUBEVIRT_GROUP, KUBEVIRT_VERSION
from virtctl.exceptions import (
    ClientCreationFailed,
    NamespaceResolutionFailed,
    ResourceFetchFailed,
    ServiceCreationFailed,
)
from virtctl.schemas.expose import ResourceKind

logger = logging.getLogger(__name__)


class KubernetesService:
    """Reads KubeVirt custom resources and creates core services."""

    SERVICE_ACCOUNT_PATH = "/var/run/secrets/kubernetes.io/serviceaccount"

    def __init__(
        self,
        settings: Settings,
        *,
        core_api: client.CoreV1Api | None = None,
        custom_objects_api: client.CustomObjectsApi | None = None,
    ) -> None:
        self._settings = settings
        self._namespace: str | None = None
        self._in_cluster = False

        if core_api and custom_objects_api:
            self._core_api = core_api
            self._custom_objects_api = custom_objects_api
            return

        api_client = self._create_api_client()
        self._core_api = core_api or client.CoreV1Api(api_client=api_client)
        self._custom_objects_api = custom_objects_api or client.CustomObjectsApi(api_client=api_client)

    def _create_api_client(self) -> client.ApiClient:
        in_cluster = (
            self._settings.kubeconfig is None
            and not os.environ.get("KUBECONFIG")
            and os.path.exists(self.SERVICE_ACCOUNT_PATH)
        )
        try:
            if in_cluster:
                config.load_incluster_config()
            else:
                config.load_kube_config(
                    config_file=self._settings.kubeconfig,
                    context=self._settings.context,
                )
        except (ConfigException, OSError) as exc:
            logger.debug("Failed to load Kubernetes configuration", exc_info=exc)
            raise ClientCreationFailed(str(exc)) from exc
        self._in_cluster = in_cluster

        configuration = client.Configuration.get_default_copy()
        if not self._settings.verify_ssl:
            logger.warning("SSL verification of the API server certificate is disabled")
            configuration.verify_ssl = False

        return client.ApiClient(configuration=configuration)

    def namespace(self) -> str:
        """Return the namespace commands operate in, resolving it on first use."""
        if self._namespace is None:
            self._namespace = self._resolve_namespace()
            logger.debug("Using namespace %s", self._namespace)
        return self._namespace

    def _resolve_namespace(self) -> str:
        if self._settings.namespace:
            return self._settings.namespace

        if self._in_cluster:
            path = os.path.join(self.SERVICE_ACCOUNT_PATH, "namespace")
            try:
                with open(path, encoding="utf-8") as handle:
                    value = handle.read().strip()
            except OSError as exc:
                raise NamespaceResolutionFailed(
                    f"failed to read service account namespace: {exc.strerror}"
                ) from exc
            return value or DEFAULT_NAMESPACE

        try:
            contexts, active_context = config.list_kube_config_contexts(
                config_file=self._settings.kubeconfig
            )
        except (ConfigException, OSError) as exc:
            raise NamespaceResolutionFailed(f"failed to read kubeconfig contexts: {exc}") from exc

        if self._settings.context:
            matching = [ctx for ctx in contexts or [] if ctx.get("name") == self._settings.context]
            if not matching:
                raise NamespaceResolutionFailed(
                    f"context {self._settings.context} not found in kubeconfig"
                )
            active_context = matching[0]

        context_body = (active_context or {}).get("context") or {}
        return context_body.get("namespace") or DEFAULT_NAMESPACE

    def get_resource(self, kind: ResourceKind, namespace: str, name: str) -> dict[str, Any]:
        """Fetch a KubeVirt object.

        A GET without a resourceVersion is served from etcd rather than the
        API server's watch cache, so the labels read here are current.
        """
        logger.debug("Fetching %s %s/%s", kind.display_name, namespace, name)
        try:
            return self._custom_objects_api.get_namespaced_custom_object(
                group=KUBEVIRT_GROUP,
                version=KUBEVIRT_VERSION,
                namespace=namespace,
                plural=kind.plural,
                name=name,
            )
        except ApiException as exc:
            logger.debug(
                "Kubernetes API error while fetching %s %s/%s",
                kind.display_name,
                namespace,
                name,
                exc_info=exc,
            )
            raise ResourceFetchFailed(
                f"error fetching {kind.display_name}: {describe_api_error(exc)}",
                namespace=namespace,
                name=name,
            ) from exc
        except Exception as exc:
            logger.debug(
                "Unexpected error while fetching %s %s/%s",
                kind.display_name,
                namespace,
                name,
                exc_info=exc,
            )
            raise ResourceFetchFailed(
                f"error fetching {kind.display_name}: {exc}",
                namespace=namespace,
                name=name,
            ) from exc

    def create_service(self, namespace: str, service: client.V1Service) -> client.V1Service:
        name = service.metadata.name
        logger.debug("Creating service %s/%s", namespace, name)
        try:
            created = self._core_api.create_namespaced_service(namespace=namespace, body=service)
        except ApiException as exc:
            logger.debug(
                "Kubernetes API error while creating service %s/%s",
                namespace,
                name,
                exc_info=exc,
            )
            raise ServiceCreationFailed(
                f"service creation failed: {describe_api_error(exc)}",
                namespace=namespace,
                name=name,
            ) from exc
        except Exception as exc:
            logger.debug("Unexpected error while creating service %s/%s", namespace, name, exc_info=exc)
            raise ServiceCreationFailed(
                f"service creation failed: {exc}",
                namespace=namespace,
                name=name,
            ) from exc
        logger.info("Created service %s/%s", namespace, name)
        return created


def describe_api_error(exc: ApiException) -> str:
    """Prefer the API server's Status message over the raw HTTP reason."""
    body = getattr(exc, "body", None)
    if body:
        try:
            payload = json.loads(body)
        except (TypeError, ValueError):
            payload = None
        if isinstance(payload, dict) and payload.get("message"):
            return str(payload["message"])
    return f"({exc.status}) {exc.reason}"
