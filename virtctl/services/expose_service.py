"""Creates a service that fronts a KubeVirt virtual machine resource."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from kubernetes import client

from virtctl.consts import NODE_NAME_LABEL
from virtctl.exceptions import MissingLabels, UnsupportedSelector
from virtctl.schemas.expose import ExposeParams, ResourceKind
from virtctl.services.kubernetes_service import KubernetesService

logger = logging.getLogger(__name__)

Selector = dict[str, str]


def _labels(mapping: Mapping[str, Any] | None) -> Selector:
    # Always copy so the fetched object is never mutated
    return {str(key): str(value) for key, value in (mapping or {}).items()}


def _vmi_selector(obj: Mapping[str, Any], namespace: str, name: str) -> Selector:
    selector = _labels((obj.get("metadata") or {}).get("labels"))
    selector.pop(NODE_NAME_LABEL, None)
    return selector


def _vm_selector(obj: Mapping[str, Any], namespace: str, name: str) -> Selector:
    template = (obj.get("spec") or {}).get("template") or {}
    return _labels((template.get("metadata") or {}).get("labels"))


def _replica_set_selector(obj: Mapping[str, Any], namespace: str, name: str) -> Selector:
    label_selector = (obj.get("spec") or {}).get("selector") or {}
    if label_selector.get("matchExpressions"):
        raise UnsupportedSelector(
            "cannot expose VirtualMachineInstance ReplicaSet with match expressions",
            namespace=namespace,
            name=name,
        )
    return _labels(label_selector.get("matchLabels"))


_SELECTOR_EXTRACTORS: dict[ResourceKind, Callable[[Mapping[str, Any], str, str], Selector]] = {
    ResourceKind.VIRTUAL_MACHINE_INSTANCE: _vmi_selector,
    ResourceKind.VIRTUAL_MACHINE: _vm_selector,
    ResourceKind.VIRTUAL_MACHINE_INSTANCE_REPLICA_SET: _replica_set_selector,
}


class ExposeService:
    """Looks up a VM resource and exposes it through a new service."""

    def __init__(self, kubernetes_service: KubernetesService) -> None:
        self._kubernetes = kubernetes_service

    def expose(
        self,
        kind: ResourceKind,
        name: str,
        params: ExposeParams,
        *,
        dry_run: bool = False,
        type_name: str | None = None,
    ) -> client.V1Service:
        """Create a service selecting the pods of the given resource.

        Args:
            kind: Which KubeVirt resource ``name`` refers to.
            name: Resource name in the active namespace.
            params: Service definition parsed from the command line.
            dry_run: Build the service but skip the create request.
            type_name: Resource type as the user spelled it, used in messages.
                Defaults to the short name of ``kind``.

        Returns:
            The created service, or the unsent one when ``dry_run`` is set.

        Raises:
            ResourceFetchFailed: The resource could not be read.
            UnsupportedSelector: A replica set selector uses match expressions.
            MissingLabels: The resource has no labels to select on.
            ServiceCreationFailed: The API server rejected the service.
        """
        namespace = self._kubernetes.namespace()
        selector = self.resolve_selector(kind, namespace, name, type_name=type_name)
        service = build_service(params, namespace=namespace, selector=selector)

        if dry_run:
            logger.info("Dry run: not creating service %s/%s", namespace, params.service_name)
            return service

        created = self._kubernetes.create_service(namespace, service)
        logger.info(
            "Exposed %s %s/%s as service %s",
            kind.display_name,
            namespace,
            name,
            params.service_name,
        )
        return created

    def resolve_selector(
        self,
        kind: ResourceKind,
        namespace: str,
        name: str,
        *,
        type_name: str | None = None,
    ) -> Selector:
        obj = self._kubernetes.get_resource(kind, namespace, name)
        selector = _SELECTOR_EXTRACTORS[kind](obj, namespace, name)
        if not selector:
            raise MissingLabels(type_name or kind.value, name)
        logger.debug("Resolved selector for %s %s/%s: %s", kind.value, namespace, name, selector)
        return selector


def build_service(params: ExposeParams, *, namespace: str, selector: Mapping[str, str]) -> client.V1Service:
    """Translate expose parameters into a single-port service object."""
    port = client.V1ServicePort(
        name=params.port_name,
        protocol=params.protocol.value,
        port=params.port,
        target_port=params.target_port,
        node_port=params.node_port,
    )
    spec = client.V1ServiceSpec(
        ports=[port],
        selector=dict(selector),
        cluster_ip=params.cluster_ip,
        type=params.service_type.value,
        load_balancer_ip=params.load_balancer_ip,
    )
    if params.external_ip:
        spec.external_i_ps = [params.external_ip]

    return client.V1Service(
        api_version="v1",
        kind="Service",
        metadata=client.V1ObjectMeta(name=params.service_name, namespace=namespace),
        spec=spec,
    )
