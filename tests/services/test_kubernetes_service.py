from __future__ import annotations

import json
import logging

import pytest
from kubernetes import client
from kubernetes.client import ApiException
from kubernetes.config.config_exception import ConfigException

from virtctl.config import Settings
from virtctl.exceptions import (
    ClientCreationFailed,
    NamespaceResolutionFailed,
    ResourceFetchFailed,
    ServiceCreationFailed,
)
from virtctl.schemas.expose import ResourceKind
from virtctl.services.kubernetes_service import KubernetesService, describe_api_error


def _contexts(active_namespace: str | None, other_namespace: str = "staging"):
    active = {"name": "prod", "context": {"cluster": "prod", "user": "admin"}}
    if active_namespace is not None:
        active["context"]["namespace"] = active_namespace
    other = {"name": "dev", "context": {"cluster": "dev", "user": "admin", "namespace": other_namespace}}
    return [active, other], active


@pytest.fixture
def no_service_account(monkeypatch, tmp_path):
    monkeypatch.setattr(KubernetesService, "SERVICE_ACCOUNT_PATH", str(tmp_path / "missing"))


def _service(settings: Settings, core_api, custom_objects_api) -> KubernetesService:
    return KubernetesService(settings, core_api=core_api, custom_objects_api=custom_objects_api)


def test_namespace_override_wins(core_api, custom_objects_api, monkeypatch):
    def _fail(**kwargs):  # pragma: no cover - must not be reached
        raise AssertionError("kubeconfig should not be read")

    monkeypatch.setattr("virtctl.services.kubernetes_service.config.list_kube_config_contexts", _fail)
    service = _service(Settings(namespace="vms"), core_api, custom_objects_api)

    assert service.namespace() == "vms"


def test_namespace_from_active_context(core_api, custom_objects_api, monkeypatch):
    calls = []

    def _list_contexts(config_file=None):
        calls.append(config_file)
        return _contexts("vms")

    monkeypatch.setattr("virtctl.services.kubernetes_service.config.list_kube_config_contexts", _list_contexts)
    service = _service(Settings(kubeconfig="/tmp/kubeconfig"), core_api, custom_objects_api)

    assert service.namespace() == "vms"
    # resolved once per invocation
    assert service.namespace() == "vms"
    assert calls == ["/tmp/kubeconfig"]


def test_namespace_defaults_when_context_has_none(core_api, custom_objects_api, monkeypatch):
    monkeypatch.setattr(
        "virtctl.services.kubernetes_service.config.list_kube_config_contexts",
        lambda config_file=None: _contexts(None),
    )
    service = _service(Settings(), core_api, custom_objects_api)

    assert service.namespace() == "default"


def test_namespace_follows_selected_context(core_api, custom_objects_api, monkeypatch):
    monkeypatch.setattr(
        "virtctl.services.kubernetes_service.config.list_kube_config_contexts",
        lambda config_file=None: _contexts("vms", other_namespace="staging"),
    )
    service = _service(Settings(context="dev"), core_api, custom_objects_api)

    assert service.namespace() == "staging"


def test_namespace_unknown_context(core_api, custom_objects_api, monkeypatch):
    monkeypatch.setattr(
        "virtctl.services.kubernetes_service.config.list_kube_config_contexts",
        lambda config_file=None: _contexts("vms"),
    )
    service = _service(Settings(context="qa"), core_api, custom_objects_api)

    with pytest.raises(NamespaceResolutionFailed, match="context qa not found"):
        service.namespace()


def test_namespace_resolution_failure(core_api, custom_objects_api, monkeypatch):
    def _broken(config_file=None):
        raise ConfigException("Invalid kube-config file. No configuration found.")

    monkeypatch.setattr("virtctl.services.kubernetes_service.config.list_kube_config_contexts", _broken)
    service = _service(Settings(), core_api, custom_objects_api)

    with pytest.raises(NamespaceResolutionFailed, match="No configuration found"):
        service.namespace()


def test_in_cluster_namespace_read_from_service_account(monkeypatch, tmp_path):
    (tmp_path / "namespace").write_text("kubevirt-workloads\n", encoding="utf-8")
    monkeypatch.setattr(KubernetesService, "SERVICE_ACCOUNT_PATH", str(tmp_path))
    loaded = []
    monkeypatch.setattr(
        "virtctl.services.kubernetes_service.config.load_incluster_config",
        lambda: loaded.append("incluster"),
    )

    service = KubernetesService(Settings())

    assert loaded == ["incluster"]
    assert service.namespace() == "kubevirt-workloads"


@pytest.mark.usefixtures("no_service_account")
def test_kube_config_loaded_with_settings(monkeypatch):
    captured = {}

    def _load_kube_config(**kwargs):
        captured.update(kwargs)

    monkeypatch.setattr("virtctl.services.kubernetes_service.config.load_kube_config", _load_kube_config)

    KubernetesService(Settings(kubeconfig="/tmp/kubeconfig", context="dev", namespace="vms"))

    assert captured == {"config_file": "/tmp/kubeconfig", "context": "dev"}


def test_kubeconfig_env_takes_precedence_over_service_account(monkeypatch, tmp_path):
    monkeypatch.setattr(KubernetesService, "SERVICE_ACCOUNT_PATH", str(tmp_path))
    monkeypatch.setenv("KUBECONFIG", "/tmp/a:/tmp/b")
    loaded = []
    monkeypatch.setattr(
        "virtctl.services.kubernetes_service.config.load_incluster_config",
        lambda: loaded.append("incluster"),
    )
    monkeypatch.setattr(
        "virtctl.services.kubernetes_service.config.load_kube_config",
        lambda **kwargs: loaded.append(kwargs),
    )

    KubernetesService(Settings(namespace="vms"))

    assert loaded == [{"config_file": None, "context": None}]


@pytest.mark.usefixtures("no_service_account")
def test_client_creation_failure(monkeypatch):
    def _broken(**kwargs):
        raise ConfigException("Invalid kube-config file. No configuration found.")

    monkeypatch.setattr("virtctl.services.kubernetes_service.config.load_kube_config", _broken)

    with pytest.raises(ClientCreationFailed) as exc_info:
        KubernetesService(Settings(namespace="vms"))

    assert str(exc_info.value) == (
        "cannot obtain KubeVirt client: Invalid kube-config file. No configuration found."
    )


@pytest.mark.usefixtures("no_service_account")
def test_verify_ssl_can_be_disabled(caplog):
    service = KubernetesService(Settings(namespace="vms", verify_ssl=False))

    assert service._core_api.api_client.configuration.verify_ssl is False  # type: ignore[attr-defined]
    assert "SSL verification" in caplog.text


def test_get_resource_passes_custom_object_coordinates(kubernetes_service, custom_objects_api):
    custom_objects_api.add("virtualmachines", "vms", "db", {"metadata": {"name": "db"}})

    obj = kubernetes_service.get_resource(ResourceKind.VIRTUAL_MACHINE, "vms", "db")

    assert obj == {"metadata": {"name": "db"}}
    assert custom_objects_api.calls == [
        {
            "group": "kubevirt.io",
            "version": "v1",
            "namespace": "vms",
            "plural": "virtualmachines",
            "name": "db",
        }
    ]


def test_fetch_failure_logged_at_debug_only(kubernetes_service, custom_objects_api, caplog):
    caplog.set_level(logging.DEBUG, logger="virtctl")
    custom_objects_api.error = OSError("connection refused")

    with pytest.raises(ResourceFetchFailed, match="connection refused"):
        kubernetes_service.get_resource(ResourceKind.VIRTUAL_MACHINE_INSTANCE, "vms", "myvm")

    assert caplog.records
    assert all(record.levelno == logging.DEBUG for record in caplog.records)


def test_create_failure_logged_at_debug_only(kubernetes_service, core_api, caplog):
    caplog.set_level(logging.DEBUG, logger="virtctl")
    core_api.error = ApiException(status=409, reason="Conflict")
    service = client.V1Service(metadata=client.V1ObjectMeta(name="web"))

    with pytest.raises(ServiceCreationFailed, match=r"\(409\) Conflict"):
        kubernetes_service.create_service("vms", service)

    assert all(record.levelno == logging.DEBUG for record in caplog.records)


def test_describe_api_error_prefers_status_message():
    exc = ApiException(status=404, reason="Not Found")
    exc.body = json.dumps(
        {
            "kind": "Status",
            "status": "Failure",
            "message": 'virtualmachineinstances.kubevirt.io "myvm" not found',
            "reason": "NotFound",
            "code": 404,
        }
    )

    assert describe_api_error(exc) == 'virtualmachineinstances.kubevirt.io "myvm" not found'


@pytest.mark.parametrize("body", [None, "", "not json", json.dumps(["unexpected"])])
def test_describe_api_error_falls_back_to_reason(body):
    exc = ApiException(status=500, reason="Internal Server Error")
    exc.body = body

    assert describe_api_error(exc) == "(500) Internal Server Error"
