"""CLI commands for virtual machine operations."""

from __future__ import annotations

import logging

import click
from dotenv import load_dotenv
from pydantic import ValidationError

from virtctl.config import Settings
from virtctl.consts import COMMAND_EXPOSE
from virtctl.exceptions import ConfigError, ExposeError
from virtctl.schemas.expose import ExposeParams, Protocol, ResourceKind, ServiceType
from virtctl.services.container import ServiceContainer
from virtctl.utils.manifest import OutputFormat, render_manifest

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_EXPOSE_HELP = """Expose a virtual machine as a new service.

Looks up a virtual machine instance, virtual machine or virtual machine
instance replica set by name and uses its selector as the selector for a new
service on the specified port.

A virtual machine instance replica set is exposed only if its selector
contains nothing but matchLabels.

\b
Possible types are (case insensitive, both singular and plural forms):
  virtualmachineinstance (vmi), virtualmachine (vm),
  virtualmachineinstancereplicaset (vmirs)
"""

_EXPOSE_EXAMPLES = """\b
Examples:
  # Expose SSH to a virtual machine instance called 'myvm' on port 5555
  # and open up port 30001 on every node of the cluster:
  virtctl expose vmi myvm --port=5555 --node-port=30001 --target-port=22 --name=myvm-ssh --type=NodePort
"""


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts)


def _configure_logging(level: str) -> None:
    logging.basicConfig(level=level, format=_LOG_FORMAT)
    logging.getLogger().setLevel(level)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--kubeconfig", default=None, help="Path to the kubeconfig file to use.")
@click.option("--context", "context_name", default=None, help="The name of the kubeconfig context to use.")
@click.option("-n", "--namespace", default=None, help="Namespace scope for this request.")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging.")
@click.pass_context
def cli(
    ctx: click.Context,
    kubeconfig: str | None,
    context_name: str | None,
    namespace: str | None,
    verbose: bool,
) -> None:
    """virtctl controls virtual machine related operations on your kubernetes cluster."""
    ctx.ensure_object(dict)
    try:
        settings = Settings.load().with_overrides(
            kubeconfig=kubeconfig,
            context=context_name,
            namespace=namespace,
            log_level="DEBUG" if verbose else None,
        )
    except ValidationError as exc:
        raise click.ClickException(f"invalid configuration: {_format_validation_error(exc)}") from exc

    _configure_logging(settings.log_level)
    ctx.obj["settings"] = settings


@cli.command(COMMAND_EXPOSE, help=_EXPOSE_HELP, epilog=_EXPOSE_EXAMPLES)
@click.argument("resource_type", metavar="TYPE")
@click.argument("resource_name", metavar="NAME")
@click.option("--name", "service_name", required=True, help="Name of the service created for the exposure of the VM.")
@click.option("--port", type=click.IntRange(1, 65535), required=True, help="The port that the service should serve on.")
@click.option(
    "--protocol",
    default=Protocol.TCP.value,
    show_default=True,
    help="The network protocol for the service to be created.",
)
@click.option(
    "--target-port",
    default="",
    help="Name or number for the port on the VM that the service should direct traffic to. Optional.",
)
@click.option(
    "--node-port",
    type=click.IntRange(0, 65535),
    default=0,
    help="Port used to expose the service on each node in a cluster.",
)
@click.option(
    "--type",
    "service_type",
    default=ServiceType.CLUSTER_IP.value,
    show_default=True,
    help="Type for this service: ClusterIP, NodePort, or LoadBalancer.",
)
@click.option(
    "--cluster-ip",
    default="",
    help="ClusterIP to be assigned to the service. Leave empty to auto-allocate, "
    "or set to 'None' to create a headless service.",
)
@click.option(
    "--external-ip",
    default="",
    help="Additional external IP address (not managed by the cluster) to accept for the service. Optional.",
)
@click.option(
    "--load-balancer-ip",
    default="",
    help="IP to assign to the Load Balancer. If empty, an ephemeral IP will be created and used.",
)
@click.option("--port-name", default="", help="Name of the port. Optional.")
@click.option("--dry-run", is_flag=True, default=False, help="Print the service instead of creating it.")
@click.option(
    "-o",
    "--output",
    type=click.Choice([fmt.value for fmt in OutputFormat]),
    default=OutputFormat.YAML.value,
    show_default=True,
    help="Manifest format used with --dry-run.",
)
@click.pass_context
def expose(
    ctx: click.Context,
    resource_type: str,
    resource_name: str,
    service_name: str,
    port: int,
    protocol: str,
    target_port: str,
    node_port: int,
    service_type: str,
    cluster_ip: str,
    external_ip: str,
    load_balancer_ip: str,
    port_name: str,
    dry_run: bool,
    output: str,
) -> None:
    vm_type = resource_type.lower()
    try:
        params = ExposeParams.from_flags(
            service_name=service_name,
            port=port,
            protocol=protocol,
            target_port=target_port,
            node_port=node_port,
            service_type=service_type,
            cluster_ip=cluster_ip,
            external_ip=external_ip,
            load_balancer_ip=load_balancer_ip,
            port_name=port_name,
        )
        kind = ResourceKind.parse(vm_type)
    except ValidationError as exc:
        raise click.ClickException(_format_validation_error(exc)) from exc
    except ExposeError as exc:
        raise click.ClickException(str(exc)) from exc

    container = ServiceContainer(config=ctx.obj["settings"])

    try:
        service = container.expose_service().expose(
            kind, resource_name, params, dry_run=dry_run, type_name=vm_type
        )
    except (ConfigError, ExposeError) as exc:
        logger.debug("expose failed", exc_info=exc)
        raise click.ClickException(str(exc)) from exc

    if dry_run:
        click.echo(render_manifest(service, OutputFormat(output)))
        return

    click.echo(f"Service {params.service_name} successfully exposed for {vm_type} {resource_name}")


def main() -> None:
    """Main CLI entry point."""
    # Load environment variables from .env file if present
    load_dotenv()

    cli(prog_name="virtctl")


if __name__ == "__main__":
    main()
