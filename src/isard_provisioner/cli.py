"""
Command-line interface for IsardVDI deployments and persistent desktops.

Connection and credentials come from ISARD_* environment variables or a .env
file; deployment and desktop specs are YAML files.
"""

import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any

import structlog
import typer
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.json import JSON
from rich.table import Table

from .client import LifecycleClient
from .config import get_settings
from .errors import IsardError
from .models import DeploymentSpec, DesktopSpec
from .resources import DeploymentResource, DesktopResource, query_groups
from .session import open_session

# Initialize CLI app and console
app = typer.Typer(
    name="isard",
    help="IsardVDI provisioning CLI",
    add_completion=False,
)
deployment_app = typer.Typer(help="Deployment lifecycle commands")
desktop_app = typer.Typer(help="Persistent desktop commands")
app.add_typer(deployment_app, name="deployment")
app.add_typer(desktop_app, name="desktop")

console = Console()


def configure_logging(verbose: bool = False, json_logs: bool = False) -> None:
    """Configure structured logging to stderr."""
    renderer: Any = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG if verbose else logging.WARNING),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit logs as JSON"),
) -> None:
    """Provision IsardVDI deployments and desktops."""
    configure_logging(verbose, json_logs)


def get_client() -> LifecycleClient:
    """Open an authenticated session from the environment."""
    try:
        return LifecycleClient(open_session(get_settings()))
    except ValidationError as e:
        errors = "; ".join(f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}" for err in e.errors())
        console.print(f"❌ Invalid ISARD_* settings: {errors}")
        raise typer.Exit(1)
    except IsardError as e:
        console.print(f"❌ Failed to connect to IsardVDI: {e}")
        raise typer.Exit(1)


def load_spec(path: Path) -> dict[str, Any]:
    """Read a YAML spec file into a mapping."""
    if not path.exists():
        console.print(f"❌ Spec file not found: {path}")
        raise typer.Exit(1)
    with open(path) as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict):
        console.print(f"❌ Spec file must contain a mapping: {path}")
        raise typer.Exit(1)
    return data


def _deployment_spec(path: Path) -> DeploymentSpec:
    try:
        return DeploymentSpec.from_dict(load_spec(path))
    except ValueError as e:
        console.print(f"❌ {e}")
        raise typer.Exit(1)


def _desktop_spec(path: Path) -> DesktopSpec:
    try:
        return DesktopSpec.from_dict(load_spec(path))
    except ValueError as e:
        console.print(f"❌ {e}")
        raise typer.Exit(1)


def _print_state(state: Any) -> None:
    console.print(JSON(json.dumps(asdict(state), indent=2)))


SPEC_OPTION = typer.Option(..., "--file", "-f", help="YAML spec file")


@app.command("login")
def login() -> None:
    """Check that a session can be negotiated."""
    client = get_client()
    console.print(f"✅ Authenticated against {client.session.endpoint}")


# === DEPLOYMENT COMMANDS ===


@deployment_app.command("resolve")
def deployment_resolve(spec_file: Path = SPEC_OPTION) -> None:
    """Print the payload a deployment would be created with."""
    spec = _deployment_spec(spec_file)
    client = get_client()
    try:
        payload = client.resolve(spec)
    except IsardError as e:
        console.print(f"❌ {e}")
        raise typer.Exit(1)
    console.print(JSON(json.dumps(payload.to_dict(), indent=2)))


@deployment_app.command("create")
def deployment_create(spec_file: Path = SPEC_OPTION) -> None:
    """Create a deployment from a spec file."""
    spec = _deployment_spec(spec_file)
    resource = DeploymentResource(get_client())
    try:
        state = resource.create(spec)
    except IsardError as e:
        console.print(f"❌ Failed to create deployment: {e}")
        raise typer.Exit(1)
    console.print(f"✅ Created deployment {state.id}")
    _print_state(state)


@deployment_app.command("show")
def deployment_show(deployment_id: str) -> None:
    """Show a deployment."""
    resource = DeploymentResource(get_client())
    try:
        state = resource.read(deployment_id)
    except IsardError as e:
        console.print(f"❌ Failed to read deployment: {e}")
        raise typer.Exit(1)
    if state is None:
        console.print(f"⚠️  Deployment {deployment_id} does not exist")
        raise typer.Exit(1)
    _print_state(state)


@deployment_app.command("update")
def deployment_update(deployment_id: str, spec_file: Path = SPEC_OPTION) -> None:
    """Update a deployment's name, description and visibility from a spec file."""
    spec = _deployment_spec(spec_file)
    resource = DeploymentResource(get_client())
    try:
        state = resource.update(deployment_id, spec)
    except IsardError as e:
        console.print(f"❌ Failed to update deployment: {e}")
        raise typer.Exit(1)
    console.print(f"✅ Updated deployment {deployment_id}")
    if state is not None:
        _print_state(state)


@deployment_app.command("delete")
def deployment_delete(
    deployment_id: str,
    permanent: bool = typer.Option(False, "--permanent", help="Delete instead of moving to recycle bin"),
) -> None:
    """Delete a deployment."""
    resource = DeploymentResource(get_client())
    try:
        resource.delete(deployment_id, permanent)
    except IsardError as e:
        console.print(f"❌ Failed to delete deployment: {e}")
        raise typer.Exit(1)
    console.print(f"✅ Deleted deployment {deployment_id}")


@deployment_app.command("start")
def deployment_start(deployment_id: str) -> None:
    """Start all desktops of a deployment."""
    resource = DeploymentResource(get_client())
    try:
        resource.start(deployment_id)
    except IsardError as e:
        console.print(f"❌ Failed to start deployment: {e}")
        raise typer.Exit(1)
    console.print(f"✅ Started deployment {deployment_id}")


@deployment_app.command("stop")
def deployment_stop(deployment_id: str) -> None:
    """Stop all desktops of a deployment."""
    resource = DeploymentResource(get_client())
    try:
        resource.stop(deployment_id)
    except IsardError as e:
        console.print(f"❌ Failed to stop deployment: {e}")
        raise typer.Exit(1)
    console.print(f"✅ Stopped deployment {deployment_id}")


# === DESKTOP COMMANDS ===


@desktop_app.command("create")
def desktop_create(spec_file: Path = SPEC_OPTION) -> None:
    """Create a persistent desktop from a spec file."""
    spec = _desktop_spec(spec_file)
    resource = DesktopResource(get_client())
    try:
        state = resource.create(spec)
    except IsardError as e:
        console.print(f"❌ Failed to create desktop: {e}")
        raise typer.Exit(1)
    console.print(f"✅ Created desktop {state.id}")
    _print_state(state)


@desktop_app.command("show")
def desktop_show(desktop_id: str) -> None:
    """Show a persistent desktop."""
    resource = DesktopResource(get_client())
    try:
        state = resource.read(desktop_id)
    except IsardError as e:
        console.print(f"❌ Failed to read desktop: {e}")
        raise typer.Exit(1)
    if state is None:
        console.print(f"⚠️  Desktop {desktop_id} does not exist")
        raise typer.Exit(1)
    _print_state(state)


@desktop_app.command("delete")
def desktop_delete(desktop_id: str) -> None:
    """Delete a persistent desktop."""
    resource = DesktopResource(get_client())
    try:
        resource.delete(desktop_id)
    except IsardError as e:
        console.print(f"❌ Failed to delete desktop: {e}")
        raise typer.Exit(1)
    console.print(f"✅ Deleted desktop {desktop_id}")


# === GROUP COMMANDS ===


@app.command("groups")
def groups(
    name_filter: str = typer.Option("", "--name-filter", "-n", help="Case-insensitive name substring"),
    category_id: str = typer.Option("", "--category", "-c", help="Parent category id"),
) -> None:
    """List user groups."""
    client = get_client()
    try:
        found = query_groups(client, name_filter, category_id)
    except IsardError as e:
        console.print(f"❌ Failed to list groups: {e}")
        raise typer.Exit(1)

    table = Table(title="Groups")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Category", style="green")
    table.add_column("Description")
    for group in found:
        table.add_row(group.id, group.name, group.parent_category, group.description)
    console.print(table)


if __name__ == "__main__":
    app()
