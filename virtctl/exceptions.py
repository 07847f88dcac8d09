"""Exception hierarchy used across the expose command and its services."""

from __future__ import annotations


class ConfigError(RuntimeError):
    """Base class for configuration related failures."""


class NamespaceResolutionFailed(ConfigError):
    """Raised when the active namespace cannot be determined."""


class ClientCreationFailed(ConfigError):
    """Raised when the Kubernetes client configuration cannot be loaded."""

    def __init__(self, cause: str):
        super().__init__(f"cannot obtain KubeVirt client: {cause}")
        self.cause = cause


class ExposeError(RuntimeError):
    """Base class for problems exposing a resource as a service."""

    def __init__(self, message: str, *, namespace: str | None = None, name: str | None = None):
        context = []
        if namespace:
            context.append(f"namespace={namespace}")
        if name:
            context.append(f"name={name}")
        detail = message if not context else f"{message} ({', '.join(context)})"
        super().__init__(detail)
        self.namespace = namespace
        self.name = name


class InvalidParameter(ExposeError):
    """Base class for command flags that fail validation."""


class UnknownProtocol(InvalidParameter):
    """Raised when the protocol is neither TCP nor UDP."""

    def __init__(self, value: str):
        super().__init__(f"unknown protocol: {value}")
        self.value = value


class UnknownServiceType(InvalidParameter):
    """Raised when the service type is not a Kubernetes service type."""

    def __init__(self, value: str):
        super().__init__(f"unknown service type: {value}")
        self.value = value


class UnsupportedServiceType(InvalidParameter):
    """Raised for service types that exist but cannot front a VM."""

    def __init__(self, value: str):
        super().__init__(f"type: {value} not supported")
        self.value = value


class UnsupportedResourceType(InvalidParameter):
    """Raised when the resource type is not one of the exposable kinds."""

    def __init__(self, value: str):
        super().__init__(f"unsupported resource type: {value}")
        self.value = value


class ResourceFetchFailed(ExposeError):
    """Raised when the resource to expose cannot be read from the API server."""


class UnsupportedSelector(ExposeError):
    """Raised when a replica set selector cannot be expressed as a service selector."""


class MissingLabels(ExposeError):
    """Raised when the resource carries no labels usable as a selector."""

    def __init__(self, kind: str, resource_name: str):
        super().__init__(f"missing label information for {kind}: {resource_name}")
        self.kind = kind
        self.resource_name = resource_name


class ServiceCreationFailed(ExposeError):
    """Raised when the API server rejects the new service."""
