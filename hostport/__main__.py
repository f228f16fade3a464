"""Command-line interface entrypoint for hostport."""

from __future__ import annotations

from contextlib import closing
from functools import partial
from typing import Optional

import click

from .config import get_config
from .utils.address import (
    InvalidAddressError,
    ip_address_and_port_to_url_string,
    ip_address_to_url_string,
    socket_address_to_url_string,
    unresolved_host_and_port_to_normalized_string,
)
from .utils.logs import setup_logging
from .utils.ports import (
    PortRangeFormatError,
    PortsExhaustedError,
    bind_port,
    create_server_from_ports,
    get_port_range_from_string,
    port_range_size,
)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log every bind attempt.")
def cli(verbose: bool) -> None:
    """hostport CLI commands."""
    setup_logging("DEBUG" if verbose else get_config().logging.log_level)


@cli.command(name="format")
@click.argument("host")
@click.argument("port", type=int)
def format_(host: str, port: int) -> None:
    """Print HOST and PORT as a normalized host:port string."""
    try:
        click.echo(unresolved_host_and_port_to_normalized_string(host, port))
    except InvalidAddressError as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command()
@click.argument("address")
@click.argument("port", type=int, required=False)
def url(address: str, port: Optional[int]) -> None:
    """Print an IP address in URL-safe form."""
    try:
        if port is None:
            click.echo(ip_address_to_url_string(address))
        else:
            click.echo(ip_address_and_port_to_url_string(address, port))
    except InvalidAddressError as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command()
@click.argument("spec")
@click.option("--count", is_flag=True, help="Only print how many ports SPEC holds.")
def ports(spec: str, count: bool) -> None:
    """Expand a port range specification such as 50000-50050,51234."""
    try:
        if count:
            click.echo(port_range_size(spec))
            return
        for port in get_port_range_from_string(spec):
            click.echo(port)
    except PortRangeFormatError as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command()
@click.argument("spec", required=False)
@click.option("--host", default=None, help="Address to bind (default from config).")
def bind(spec: Optional[str], host: Optional[str]) -> None:
    """Bind the first free port in SPEC, print it and release it."""
    config = get_config()
    if spec is None:
        spec = config.ports.range
    if host is None:
        host = config.network.bind_host
    factory = partial(bind_port, backlog=config.ports.backlog)
    try:
        candidates = get_port_range_from_string(spec)
        listener = create_server_from_ports(host, candidates, factory)
    except (PortRangeFormatError, PortsExhaustedError) as exc:
        raise click.ClickException(str(exc)) from exc

    with closing(listener) as sock:
        click.echo(socket_address_to_url_string(sock.getsockname()))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
