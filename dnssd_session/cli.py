"""Command line interface.

    dnssd-session advertise "Living Room" _http._tcp 8080 --attr path=/
    dnssd-session browse _http._tcp --timeout 5 --resolve
"""

import threading
import time
from typing import Annotated, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.table import Table
import typer

from .bootstrap.runtime import create_runtime, Runtime
from .config import load_config
from .domain.events import OperationFailed, ServiceFound, ServiceLost, ServiceRegistered, ServiceResolved
from .domain.exceptions import ConfigurationError, ValidationError
from .domain.service import ResolvedService, ServiceDescriptor
from .logging_config import setup_logging

app = typer.Typer(
    name="dnssd-session",
    help="Advertise and browse DNS-SD services on the local network",
    no_args_is_help=True,
)

console = Console()

ConfigOption = Annotated[Optional[str], typer.Option("--config", "-c", help="YAML configuration file")]
LogLevelOption = Annotated[str, typer.Option("--log-level", help="DEBUG, INFO, WARNING or ERROR")]
JsonLogsOption = Annotated[bool, typer.Option("--json-logs", help="Emit logs as JSON lines")]


def parse_attributes(values: Optional[List[str]]) -> Dict[str, str]:
    """``["k=v", "flag"]`` -> ``{"k": "v", "flag": ""}``, keeping order."""
    attributes: Dict[str, str] = {}
    for item in values or []:
        key, _, value = item.partition("=")
        key = key.strip()
        if not key:
            raise typer.BadParameter(f"invalid attribute {item!r}, expected key=value")
        attributes[key] = value
    return attributes


def _build_runtime(config_path: Optional[str], log_level: str, json_logs: bool) -> Runtime:
    setup_logging(level=log_level, json_format=json_logs)
    try:
        config = load_config(config_path)
    except ConfigurationError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e}")
        raise typer.Exit(2)
    return create_runtime(config=config)


def _report_failure(event: OperationFailed) -> None:
    subject = f" ({event.subject})" if event.subject else ""
    console.print(f"[red]{event.kind.name}{subject}:[/red] {event.message} [dim](code {event.code})[/dim]")


@app.command()
def advertise(
    name: Annotated[str, typer.Argument(help="Service instance name")],
    service_type: Annotated[str, typer.Argument(help="Service type, e.g. _http._tcp")],
    port: Annotated[int, typer.Argument(help="Port the service listens on")],
    attr: Annotated[Optional[List[str]], typer.Option("--attr", "-a", help="TXT attribute key=value")] = None,
    config: ConfigOption = None,
    log_level: LogLevelOption = "WARNING",
    json_logs: JsonLogsOption = False,
) -> None:
    """Advertise a service until interrupted."""
    try:
        descriptor = ServiceDescriptor.create(name, service_type, port, parse_attributes(attr))
    except ValidationError as e:
        raise typer.BadParameter(e.message)

    runtime = _build_runtime(config, log_level, json_logs)
    failed = threading.Event()

    def on_registered(event: ServiceRegistered) -> None:
        console.print(
            f"[green]Advertising[/green] [bold]{event.name}[/bold] ({event.service_type}) on port {event.port}"
        )

    def on_failed(event: OperationFailed) -> None:
        _report_failure(event)
        failed.set()

    runtime.event_bus.subscribe(ServiceRegistered, on_registered)
    runtime.event_bus.subscribe(OperationFailed, on_failed)

    try:
        runtime.session.register(descriptor)
        console.print("[dim]Press Ctrl+C to stop.[/dim]")
        while not failed.wait(0.5):
            pass
    except KeyboardInterrupt:
        console.print("\n[dim]Withdrawing...[/dim]")
    finally:
        runtime.close()

    if failed.is_set():
        raise typer.Exit(1)


@app.command()
def browse(
    service_type: Annotated[str, typer.Argument(help="Service type, e.g. _http._tcp")],
    timeout: Annotated[float, typer.Option("--timeout", "-t", help="Seconds to listen")] = 5.0,
    resolve: Annotated[bool, typer.Option("--resolve", "-r", help="Resolve each service found")] = False,
    config: ConfigOption = None,
    log_level: LogLevelOption = "WARNING",
    json_logs: JsonLogsOption = False,
) -> None:
    """List services of a type seen within the timeout."""
    runtime = _build_runtime(config, log_level, json_logs)
    session = runtime.session
    resolved: Dict[str, ResolvedService] = {}
    lock = threading.Lock()

    def on_found(event: ServiceFound) -> None:
        console.print(f"[green]+[/green] {event.reference.name}")
        if resolve:
            session.resolve(event.reference)

    def on_lost(event: ServiceLost) -> None:
        console.print(f"[yellow]-[/yellow] {event.reference.name}")

    def on_resolved(event: ServiceResolved) -> None:
        with lock:
            resolved[event.service.name] = event.service

    runtime.event_bus.subscribe(ServiceFound, on_found)
    runtime.event_bus.subscribe(ServiceLost, on_lost)
    runtime.event_bus.subscribe(ServiceResolved, on_resolved)
    runtime.event_bus.subscribe(OperationFailed, _report_failure)

    try:
        try:
            session.discover(service_type)
        except ValidationError as e:
            raise typer.BadParameter(e.message)
        time.sleep(max(0.0, timeout))
        services = session.get_known_services()
    except KeyboardInterrupt:
        services = session.get_known_services()
    finally:
        runtime.close()

    if not services:
        console.print(f"No {service_type} services found.")
        return

    table = Table(box=box.SIMPLE, title=f"{service_type} services")
    table.add_column("Name", style="bold")
    if resolve:
        table.add_column("Address")
        table.add_column("Attributes", style="dim")

    with lock:
        for reference in services:
            if not resolve:
                table.add_row(reference.name)
                continue
            service = resolved.get(reference.name)
            if service is None:
                table.add_row(reference.name, "[dim]unresolved[/dim]", "")
            else:
                attributes = ", ".join(f"{k}={v}" for k, v in service.attributes.items())
                table.add_row(reference.name, f"{service.host}:{service.port}", attributes)

    console.print(table)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
