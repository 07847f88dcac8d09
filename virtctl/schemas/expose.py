"""Pydantic models and enums describing an expose request."""

from __future__ import annotations

import re
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from virtctl.exceptions import (
    UnknownProtocol,
    UnknownServiceType,
    UnsupportedResourceType,
    UnsupportedServiceType,
)


class ResourceKind(str, Enum):
    VIRTUAL_MACHINE_INSTANCE = "vmi"
    VIRTUAL_MACHINE = "vm"
    VIRTUAL_MACHINE_INSTANCE_REPLICA_SET = "vmirs"

    @property
    def plural(self) -> str:
        """Custom resource plural used in API paths."""
        return _PLURALS[self]

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @classmethod
    def parse(cls, value: str) -> "ResourceKind":
        """Resolve a case-insensitive singular, plural or short alias."""
        normalized = value.lower()
        try:
            return _ALIASES[normalized]
        except KeyError:
            raise UnsupportedResourceType(normalized) from None


_PLURALS = {
    ResourceKind.VIRTUAL_MACHINE_INSTANCE: "virtualmachineinstances",
    ResourceKind.VIRTUAL_MACHINE: "virtualmachines",
    ResourceKind.VIRTUAL_MACHINE_INSTANCE_REPLICA_SET: "virtualmachineinstancereplicasets",
}

_DISPLAY_NAMES = {
    ResourceKind.VIRTUAL_MACHINE_INSTANCE: "VirtualMachineInstance",
    ResourceKind.VIRTUAL_MACHINE: "VirtualMachine",
    ResourceKind.VIRTUAL_MACHINE_INSTANCE_REPLICA_SET: "VirtualMachineInstance ReplicaSet",
}

_ALIASES = {
    alias: kind
    for kind, aliases in {
        ResourceKind.VIRTUAL_MACHINE_INSTANCE: (
            "vmi", "vmis", "virtualmachineinstance", "virtualmachineinstances",
        ),
        ResourceKind.VIRTUAL_MACHINE: (
            "vm", "vms", "virtualmachine", "virtualmachines",
        ),
        ResourceKind.VIRTUAL_MACHINE_INSTANCE_REPLICA_SET: (
            "vmirs", "vmirss", "virtualmachineinstancereplicaset", "virtualmachineinstancereplicasets",
        ),
    }.items()
    for alias in aliases
}


class Protocol(str, Enum):
    TCP = "TCP"
    UDP = "UDP"

    @classmethod
    def parse(cls, value: str) -> "Protocol":
        try:
            return cls(value)
        except ValueError:
            raise UnknownProtocol(value) from None


class ServiceType(str, Enum):
    CLUSTER_IP = "ClusterIP"
    NODE_PORT = "NodePort"
    LOAD_BALANCER = "LoadBalancer"

    @classmethod
    def parse(cls, value: str) -> "ServiceType":
        if value == _EXTERNAL_NAME:
            raise UnsupportedServiceType(value)
        try:
            return cls(value)
        except ValueError:
            raise UnknownServiceType(value) from None


_EXTERNAL_NAME = "ExternalName"

TargetPort = Union[int, str]

# Same grammar as Go strconv.Atoi: ASCII digits with an optional sign, nothing else
_PORT_NUMBER = re.compile(r"[+-]?[0-9]+")


def parse_target_port(raw_value: str | None) -> Optional[TargetPort]:
    """Interpret a port as a number when it parses as one, else as a port name."""
    if raw_value is None or raw_value == "":
        return None
    if _PORT_NUMBER.fullmatch(raw_value):
        return int(raw_value)
    return raw_value


class ExposeParams(BaseModel):
    """Everything the expose command needs, parsed once from the command line."""

    model_config = ConfigDict(frozen=True)

    service_name: str = Field(min_length=1)
    port: int = Field(ge=1, le=65535)
    protocol: Protocol = Protocol.TCP
    target_port: Optional[TargetPort] = None
    node_port: Optional[int] = Field(default=None, ge=1, le=65535)
    service_type: ServiceType = ServiceType.CLUSTER_IP
    cluster_ip: Optional[str] = None
    external_ip: Optional[str] = None
    load_balancer_ip: Optional[str] = None
    port_name: Optional[str] = None

    @field_validator("service_name")
    @classmethod
    def _strip_and_require(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("must not be empty")
        return trimmed

    @field_validator("cluster_ip", "external_ip", "load_balancer_ip", "port_name")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        trimmed = value.strip()
        return trimmed or None

    @classmethod
    def from_flags(
        cls,
        *,
        service_name: str,
        port: int,
        protocol: str = Protocol.TCP.value,
        target_port: str | None = None,
        node_port: int | None = None,
        service_type: str = ServiceType.CLUSTER_IP.value,
        cluster_ip: str | None = None,
        external_ip: str | None = None,
        load_balancer_ip: str | None = None,
        port_name: str | None = None,
    ) -> "ExposeParams":
        """Build params from raw flag values, failing on the first invalid enum."""
        return cls(
            service_name=service_name,
            port=port,
            protocol=Protocol.parse(protocol),
            target_port=parse_target_port(target_port),
            # 0 is the flag default and means "let the cluster pick"
            node_port=node_port or None,
            service_type=ServiceType.parse(service_type),
            cluster_ip=cluster_ip,
            external_ip=external_ip,
            load_balancer_ip=load_balancer_ip,
            port_name=port_name,
        )
