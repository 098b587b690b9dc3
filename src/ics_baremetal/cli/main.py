"""ics CLI: command-line interface for ics-baremetal.

Commands:
    inventory         List inventory items (instance types per location)
    os                List operating systems for an instance type + location
    server create     Validate, order and wait for a bare-metal server
    server show       Show a server by service ID
    server rename     Change a server's friendly name
    server cancel     Cancel (destroy) a server
    ssh-key create    Upload an SSH public key
    ssh-key list      List SSH keys
    ssh-key show      Show an SSH key by label
    ssh-key delete    Delete an SSH key by label
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, NoReturn

import click

from ics_baremetal import __version__
from ics_baremetal.catalog.resolver import OperatingSystemNotFoundError, ResolutionError
from ics_baremetal.client.transport import ICSError
from ics_baremetal.config import ConfigError
from ics_baremetal.models import (
    BareMetalServerSpec,
    BareMetalServerState,
    OperationResult,
    SSHKeySpec,
    SSHKeyState,
)
from ics_baremetal.ordering.orchestrator import OrderSubmissionError, SSHKeyNotFoundError
from ics_baremetal.provider import ICSProvider
from ics_baremetal.provisioning.poller import ProvisioningCancelled, ProvisioningTimeout
from ics_baremetal.resources.errors import ResourceImportError, ResourceNotFoundError
from ics_baremetal.resources.ssh_key import SSHKeyRetrievalError

# Errors reported as "Error: ..." with exit code 1.
_EXPECTED_ERRORS = (
    ICSError,
    ResolutionError,
    OperatingSystemNotFoundError,
    SSHKeyNotFoundError,
    OrderSubmissionError,
    ProvisioningTimeout,
    ProvisioningCancelled,
    ResourceNotFoundError,
    ResourceImportError,
    SSHKeyRetrievalError,
)


def _fail(message: str) -> NoReturn:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _provider(ctx: click.Context) -> ICSProvider:
    """Return the provider from the context, building it from config once."""
    provider = ctx.obj.get("provider")
    if provider is None:
        try:
            provider = ICSProvider.from_config(ctx.obj.get("config_path"))
        except (ConfigError, FileNotFoundError) as e:
            _fail(str(e))
        ctx.obj["provider"] = provider
    return provider


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2))


def _echo_warnings(result: OperationResult) -> None:
    for diag in result.warnings:
        click.echo(click.style(f"Warning: {diag.summary}", fg="yellow", bold=True), err=True)
        if diag.detail:
            click.echo(f"  {diag.detail}", err=True)


def _server_dict(state: BareMetalServerState, show_password: bool) -> dict[str, Any]:
    exclude = None if show_password else {"root_password"}
    return state.model_dump(mode="json", exclude=exclude)


def _echo_server(state: BareMetalServerState, show_password: bool = False) -> None:
    click.echo(click.style(state.id or "<unknown>", bold=True))
    click.echo(f"  service_id:    {state.service_id}")
    click.echo(f"  instance_type: {state.instance_type or state.server_type or '-'}")
    click.echo(f"  location:      {state.location or '-'}")
    if state.operating_system:
        click.echo(f"  os:            {state.operating_system}")
    click.echo(f"  hostname:      {state.hostname or '-'}")
    click.echo(f"  friendly_name: {state.friendly_name or '-'}")
    click.echo(f"  public_ip:     {state.public_ip or '-'}")
    click.echo(f"  datacenter:    {state.datacenter_name or '-'}")
    if show_password:
        click.echo(f"  root_password: {state.root_password}")
    else:
        click.echo("  root_password: (hidden, use --show-password)")


def _echo_ssh_key(state: SSHKeyState) -> None:
    click.echo(click.style(state.label, bold=True) + f"  (id {state.id})")
    click.echo(f"  key:     {state.public_key[:60]}{'...' if len(state.public_key) > 60 else ''}")
    click.echo(f"  created: {state.created_at}")
    if state.assigned_servers:
        click.echo("  servers:")
        for srv in state.assigned_servers:
            click.echo(f"    {srv.server_id}  {srv.hostname}  ({srv.datacenter_name})")


# --- Root group ---


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", default=None, help="Path to ics.yaml")
@click.option("--verbose", "-v", is_flag=True, help="Log progress to stderr")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """ics: bare-metal servers and SSH keys on Ingenuity Cloud Services."""
    ctx.ensure_object(dict)
    ctx.obj.setdefault("config_path", config_path)
    if verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )


# --- inventory command ---


@cli.command()
@click.option("--available", is_flag=True, help="Only items with auto-provision stock")
@click.option("--location", "-l", default=None, help="Filter by location code")
@click.option("--type", "instance_type", default=None, help="Filter by instance type")
@click.option("--json-output", is_flag=True, help="Output as JSON")
@click.pass_context
def inventory(
    ctx: click.Context,
    available: bool,
    location: str | None,
    instance_type: str | None,
    json_output: bool,
) -> None:
    """List inventory items."""
    provider = _provider(ctx)
    try:
        snapshot = provider.inventory.read(
            available_only=available, location=location, instance_type=instance_type,
        )
    except ICSError as e:
        _fail(f"Unable to read inventory: {e}")

    if json_output:
        _echo_json([item.model_dump(mode="json") for item in snapshot.items])
        return

    if not snapshot.items:
        click.echo("No inventory items found.")
        return
    for item in snapshot.items:
        qty_color = "green" if item.available else "red"
        click.echo(
            f"  {item.sku_product_name:<14} {item.location_code:<6} "
            + click.style(f"[{item.auto_provision_quantity:>3} auto]", fg=qty_color)
            + f"  {item.cpu_cores}c {item.cpu_model}, {item.total_ram_gb}GB RAM"
            + (f", {item.price_hourly} {item.currency_code}/h" if item.price_hourly else "")
        )
    click.echo(f"\n{len(snapshot.items)} item(s).")


# --- os command ---


@cli.command("os")
@click.argument("instance_type")
@click.argument("location")
@click.option("--json-output", is_flag=True, help="Output as JSON")
@click.pass_context
def operating_systems(
    ctx: click.Context, instance_type: str, location: str, json_output: bool,
) -> None:
    """List operating systems for INSTANCE_TYPE in LOCATION."""
    provider = _provider(ctx)
    try:
        listing = provider.operating_systems.read(instance_type, location)
    except ICSError as e:
        _fail(
            f"Unable to read operating systems for server type '{instance_type}' "
            f"in location '{location}': {e}"
        )

    if json_output:
        _echo_json(listing.model_dump(mode="json"))
        return

    if not listing.operating_systems:
        click.echo(f"No operating systems offered for {instance_type} in {location}.")
        return
    for os_item in listing.operating_systems:
        click.echo(f"  {os_item.name:<30} {os_item.product_code}")


# --- server group ---


@cli.group()
def server() -> None:
    """Bare-metal server commands."""


@server.command("create")
@click.option("--instance-type", "-t", required=True, help="Instance type, e.g. c1.small")
@click.option("--location", "-l", required=True, help="Location code, e.g. NYC1")
@click.option("--os", "operating_system", required=True, help="OS name, e.g. 'Ubuntu 24.04'")
@click.option("--hostname", default=None, help="Server hostname")
@click.option("--friendly-name", default=None, help="Display name set after provisioning")
@click.option("--ssh-key", "ssh_keys", multiple=True, help="SSH key label (repeatable)")
@click.option("--show-password", is_flag=True, help="Print the root password")
@click.option("--json-output", is_flag=True, help="Output as JSON")
@click.pass_context
def server_create(
    ctx: click.Context,
    instance_type: str,
    location: str,
    operating_system: str,
    hostname: str | None,
    friendly_name: str | None,
    ssh_keys: tuple[str, ...],
    show_password: bool,
    json_output: bool,
) -> None:
    """Validate, order and wait for a new server."""
    provider = _provider(ctx)
    spec = BareMetalServerSpec(
        instance_type=instance_type,
        location=location,
        operating_system=operating_system,
        hostname=hostname,
        friendly_name=friendly_name,
        ssh_key_labels=list(ssh_keys) or None,
    )
    try:
        result = provider.servers.create(spec)
    except _EXPECTED_ERRORS as e:
        _fail(str(e))

    _echo_warnings(result)
    assert result.state is not None
    if json_output:
        _echo_json(_server_dict(result.state, show_password))
    else:
        _echo_server(result.state, show_password)


@server.command("show")
@click.argument("service_id")
@click.option("--show-password", is_flag=True, help="Print the root password")
@click.option("--json-output", is_flag=True, help="Output as JSON")
@click.pass_context
def server_show(
    ctx: click.Context, service_id: str, show_password: bool, json_output: bool,
) -> None:
    """Show the server with SERVICE_ID."""
    provider = _provider(ctx)
    try:
        result = provider.servers.import_state(service_id)
    except _EXPECTED_ERRORS as e:
        _fail(str(e))

    assert result.state is not None
    if json_output:
        _echo_json(_server_dict(result.state, show_password))
    else:
        _echo_server(result.state, show_password)


@server.command("rename")
@click.argument("service_id")
@click.argument("friendly_name")
@click.pass_context
def server_rename(ctx: click.Context, service_id: str, friendly_name: str) -> None:
    """Set the friendly name of the server with SERVICE_ID."""
    provider = _provider(ctx)
    try:
        current = provider.servers.import_state(service_id).state
        assert current is not None
        plan = current.model_copy(update={"friendly_name": friendly_name})
        result = provider.servers.update(plan, current)
    except _EXPECTED_ERRORS as e:
        _fail(str(e))

    _echo_warnings(result)
    click.echo(f"Renamed server {current.id} to '{friendly_name}'.")


@server.command("cancel")
@click.argument("service_id")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def server_cancel(ctx: click.Context, service_id: str, yes: bool) -> None:
    """Cancel the server with SERVICE_ID."""
    provider = _provider(ctx)
    try:
        current = provider.servers.import_state(service_id).state
    except _EXPECTED_ERRORS as e:
        _fail(str(e))
    assert current is not None

    if not yes:
        click.confirm(
            f"Cancel server {current.id} ({current.hostname or current.service_id})?",
            abort=True,
        )
    try:
        provider.servers.delete(current)
    except _EXPECTED_ERRORS as e:
        _fail(f"Unable to cancel server {current.id}: {e}")
    click.echo(f"Server {current.id} canceled.")


# --- ssh-key group ---


@cli.group("ssh-key")
def ssh_key() -> None:
    """SSH key commands."""


@ssh_key.command("create")
@click.argument("label")
@click.option(
    "--public-key-file", "-f", type=click.File("r"), default=None,
    help="File holding the public key (e.g. ~/.ssh/id_ed25519.pub)",
)
@click.option("--public-key", default=None, help="Public key material")
@click.option("--json-output", is_flag=True, help="Output as JSON")
@click.pass_context
def ssh_key_create(
    ctx: click.Context,
    label: str,
    public_key_file: Any,
    public_key: str | None,
    json_output: bool,
) -> None:
    """Create an SSH key named LABEL."""
    if public_key_file is not None:
        public_key = public_key_file.read().strip()
    if not public_key:
        _fail("one of --public-key-file or --public-key is required")

    provider = _provider(ctx)
    try:
        result = provider.ssh_keys.create(SSHKeySpec(label=label, public_key=public_key))
    except _EXPECTED_ERRORS as e:
        _fail(f"SSH key creation failed: {e}")

    assert result.state is not None
    if json_output:
        _echo_json(result.state.model_dump(mode="json"))
    else:
        _echo_ssh_key(result.state)


@ssh_key.command("list")
@click.option("--json-output", is_flag=True, help="Output as JSON")
@click.pass_context
def ssh_key_list(ctx: click.Context, json_output: bool) -> None:
    """List SSH keys."""
    provider = _provider(ctx)
    try:
        keys = provider.client.get_ssh_keys()
    except ICSError as e:
        _fail(f"Unable to list SSH keys: {e}")

    if json_output:
        _echo_json([key.model_dump(mode="json") for key in keys])
        return
    if not keys:
        click.echo("No SSH keys found.")
        return
    for key in keys:
        click.echo(
            f"  {key.label:<30} id={key.id:<6} servers={len(key.assigned_servers)}"
        )
    click.echo(f"\n{len(keys)} key(s).")


@ssh_key.command("show")
@click.argument("label")
@click.option("--json-output", is_flag=True, help="Output as JSON")
@click.pass_context
def ssh_key_show(ctx: click.Context, label: str, json_output: bool) -> None:
    """Show the SSH key named LABEL."""
    provider = _provider(ctx)
    try:
        result = provider.ssh_keys.import_state(label)
    except _EXPECTED_ERRORS as e:
        _fail(str(e))

    assert result.state is not None
    if json_output:
        _echo_json(result.state.model_dump(mode="json"))
    else:
        _echo_ssh_key(result.state)


@ssh_key.command("delete")
@click.argument("label")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def ssh_key_delete(ctx: click.Context, label: str, yes: bool) -> None:
    """Delete the SSH key named LABEL."""
    provider = _provider(ctx)
    try:
        current = provider.ssh_keys.import_state(label).state
    except _EXPECTED_ERRORS as e:
        _fail(str(e))
    assert current is not None

    if not yes:
        click.confirm(f"Delete SSH key '{label}' (id {current.id})?", abort=True)
    try:
        provider.ssh_keys.delete(current)
    except _EXPECTED_ERRORS as e:
        _fail(f"Unable to delete SSH key {current.id}: {e}")
    click.echo(f"SSH key '{label}' deleted.")
