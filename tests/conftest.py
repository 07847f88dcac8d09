from __future__ import annotations

from typing import Any

import pytest
from kubernetes.client import ApiException

from virtctl.config import Settings
from virtctl.services.kubernetes_service import KubernetesService


@pytest.fixture(autouse=True)
def _mock_kube_config(monkeypatch):
    monkeypatch.setattr(
        "virtctl.services.kubernetes_service.config.load_kube_config",
        lambda **kwargs: None,
    )
    monkeypatch.setattr(
        "virtctl.services.kubernetes_service.config.load_incluster_config",
        lambda: None,
    )


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch):
    for name in (
        "KUBECONFIG",
        "VIRTCTL_CONTEXT",
        "VIRTCTL_NAMESPACE",
        "VIRTCTL_VERIFY_SSL",
        "VIRTCTL_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


class FakeCustomObjectsApi:
    """Serves KubeVirt objects keyed by (plural, namespace, name)."""

    def __init__(self, error: Exception | None = None):
        self.objects: dict[tuple[str, str, str], dict[str, Any]] = {}
        self.calls: list[dict[str, str]] = []
        self.error = error

    def add(self, plural: str, namespace: str, name: str, obj: dict[str, Any]) -> None:
        self.objects[(plural, namespace, name)] = obj

    def get_namespaced_custom_object(self, group: str, version: str, namespace: str, plural: str, name: str):
        self.calls.append(
            {
                "group": group,
                "version": version,
                "namespace": namespace,
                "plural": plural,
                "name": name,
            }
        )
        if self.error is not None:
            raise self.error
        try:
            return self.objects[(plural, namespace, name)]
        except KeyError:
            raise ApiException(status=404, reason="Not Found") from None


class FakeCoreApi:
    def __init__(self, error: Exception | None = None):
        self.created: list[tuple[str, Any]] = []
        self.error = error

    def create_namespaced_service(self, namespace: str, body):
        self.created.append((namespace, body))
        if self.error is not None:
            raise self.error
        return body


@pytest.fixture
def custom_objects_api() -> FakeCustomObjectsApi:
    return FakeCustomObjectsApi()


@pytest.fixture
def core_api() -> FakeCoreApi:
    return FakeCoreApi()


@pytest.fixture
def settings() -> Settings:
    return Settings(namespace="default")


@pytest.fixture
def kubernetes_service(settings, core_api, custom_objects_api) -> KubernetesService:
    return KubernetesService(
        settings,
        core_api=core_api,
        custom_objects_api=custom_objects_api,
    )
