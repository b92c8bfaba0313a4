"""Command line interface for inspecting persisted journey instances."""

from __future__ import annotations

import asyncio
import json
from typing import Optional

import typer

from journeyflow.config import load_config
from journeyflow.descriptor import REGISTRY
from journeyflow.errors import InstanceNotFoundError
from journeyflow.instance_id import JourneyInstanceId
from journeyflow.persistence import StoreEntry, get_store
from journeyflow.serialization import JsonStateSerializer, StateTypeRegistry
from journeyflow.state import StoreInstanceStateProvider

app = typer.Typer(help="CLI for journeyflow instance state")

instance_app = typer.Typer(help="Commands for inspecting journey instances")

app.add_typer(instance_app, name="instance")


@app.callback()
def main() -> None:
    """journeyflow CLI entry point."""
    pass


def _state_provider() -> StoreInstanceStateProvider:
    config = load_config()
    return StoreInstanceStateProvider(
        get_store(),
        key_prefix=config.key_prefix,
        soft_delete=config.soft_delete,
    )


def _decode_state(entry: StoreEntry, import_types: bool) -> Optional[str]:
    type_registry = StateTypeRegistry(d.state_type for d in REGISTRY)
    state_type = type_registry.resolve(entry.state_type, allow_import=import_types)
    if state_type is None:
        return None
    state = JsonStateSerializer().deserialize(state_type, entry.state)
    return repr(state)


@instance_app.command("list")
def instance_list() -> None:
    """
    List all persisted journey instances with their status.

    Returns:
        Tab-separated identifiers, journey names and statuses, or
        "No instances found"

    Example:
        journeyflow instance list
        # Output: wiz?id=7&uniqueKey=3f2b...    wiz    active
    """
    entries = asyncio.run(_state_provider().list_entries())
    if not entries:
        typer.echo("No instances found")
        return
    for entry in entries:
        typer.echo(f"{entry.instance_id}\t{entry.journey_name}\t{entry.status}")


@instance_app.command("show")
def instance_show(
    instance_id: str,
    import_types: bool = typer.Option(
        False, help="Import the state type's module to decode unregistered state"
    ),
) -> None:
    """
    Show a persisted journey instance.

    Args:
        instance_id: Serialized instance identifier (from 'instance list')
        import_types: Allow importing state type modules named in the entry

    Example:
        journeyflow instance show 'wiz?id=7&uniqueKey=3f2b...'
    """
    entry = asyncio.run(
        _state_provider().get_entry(JourneyInstanceId.parse(instance_id))
    )
    if entry is None:
        typer.echo("Instance not found")
        raise typer.Exit(code=1)

    typer.echo(f"Instance {entry.instance_id}: {entry.status}")
    typer.echo(f"Journey: {entry.journey_name}")
    typer.echo(f"State type: {entry.state_type}")
    if entry.properties:
        typer.echo(f"Properties: {json.dumps(entry.properties, default=str)}")
    typer.echo(f"Created: {entry.created_at}  Updated: {entry.updated_at}")

    decoded = _decode_state(entry, import_types)
    if decoded is not None:
        typer.echo(f"State: {decoded}")
    else:
        typer.echo(f"State (raw): {entry.state.decode('utf-8', errors='replace')}")


@instance_app.command("delete")
def instance_delete(instance_id: str) -> None:
    """Delete a persisted journey instance."""
    provider = _state_provider()
    try:
        asyncio.run(provider.delete_instance(JourneyInstanceId.parse(instance_id)))
    except InstanceNotFoundError:
        typer.echo("Instance not found")
        raise typer.Exit(code=1)
    typer.echo(f"Deleted {instance_id}")


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
