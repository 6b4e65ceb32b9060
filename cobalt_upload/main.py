"""
Main entry point for the Cobalt Upload application.

This module provides the command-line interface and application startup logic.
"""

import asyncio
import logging
import sys
from typing import Awaitable, Callable, Optional

import aiohttp
import typer

from .application.container import Container
from .application.startup import ApplicationStartup
from .core.domain.errors import ServerStartupError
from .core.interfaces.upload import TUS_RESUMABLE
from .infrastructure.config.loader import ConfigLoader
from .infrastructure.config.models import ApplicationConfig
from .infrastructure.logging.setup import setup_logging
from .infrastructure.server.http import HTTPServer
from .presentation.api.app import create_app

# Create CLI application
cli = typer.Typer(
    name="cobalt-upload",
    help="Resumable upload server implementing the tus 1.0.0 protocol"
)

logger = logging.getLogger(__name__)


@cli.command()
def start(
    config_file: Optional[str] = typer.Option(
        None, "--config", "-c", help="Configuration file path"
    ),
    host: Optional[str] = typer.Option(
        None, "--host", help="Server host address"
    ),
    port: Optional[int] = typer.Option(
        None, "--port", "-p", help="Server port"
    ),
    upload_dir: Optional[str] = typer.Option(
        None, "--upload-dir", "-d", help="Directory holding upload data"
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Logging level"
    ),
    debug: bool = typer.Option(
        False, "--debug", help="Enable debug mode"
    )
) -> None:
    """Start the Cobalt Upload server."""

    config_loader = ConfigLoader()
    config = config_loader.load_config(config_file)

    # Override with command line arguments
    if host:
        config.server.host = host
    if port is not None:
        config.server.port = port
    if upload_dir:
        config.upload.upload_directory = upload_dir
    if log_level:
        config.logging.level = log_level.upper()
    if debug:
        config.debug = True
        config.logging.level = "DEBUG"

    setup_logging(config.logging)

    logger.info(f"Starting {config.name} v{config.version}")
    logger.info(f"Environment: {config.environment}")
    logger.info(f"Debug mode: {config.debug}")

    try:
        asyncio.run(run_application(config))
    except ServerStartupError as e:
        logger.error(f"Could not start server: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Application interrupted by user")
    except Exception as e:
        logger.error(f"Application failed: {e}")
        sys.exit(1)


@cli.command()
def init_config(
    output: str = typer.Option(
        "config.yaml", "--output", "-o", help="Output configuration file"
    ),
    format: str = typer.Option(
        "yaml", "--format", "-f", help="Configuration format (yaml/json)"
    )
) -> None:
    """Generate a default configuration file."""

    config = ApplicationConfig()
    config_loader = ConfigLoader()

    try:
        config_loader.save_config(config, output, format)
        typer.echo(f"Default configuration saved to {output}")
    except Exception as e:
        typer.echo(f"Error saving configuration: {e}", err=True)
        sys.exit(1)


@cli.command()
def validate_config(
    config_file: str = typer.Argument(...,
                                      help="Configuration file to validate")
) -> None:
    """Validate a configuration file."""

    config_loader = ConfigLoader()

    try:
        config = config_loader.load_config(config_file)
        typer.echo(f"Configuration file {config_file} is valid")
        typer.echo(f"Application: {config.name} v{config.version}")
        typer.echo(f"Listening on: {config.server.host}:{config.server.port}")
        typer.echo(f"Upload directory: {config.upload.upload_directory}")
    except Exception as e:
        typer.echo(f"Configuration validation failed: {e}", err=True)
        sys.exit(1)


async def _query_server(
    method: str,
    url: str,
    timeout: float,
    expected_status: int,
    report: Callable[[aiohttp.ClientResponse], Awaitable[None]],
    failure_label: str
) -> bool:
    """Send one request and hand the response to report when the status matches."""
    try:
        async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=timeout)) as session:
            async with session.request(method, url, headers={"Tus-Resumable": TUS_RESUMABLE}) as response:
                if response.status != expected_status:
                    typer.echo(f"Server returned status {response.status}")
                    return False
                await report(response)
                return True
    except Exception as e:
        typer.echo(f"{failure_label} failed: {e}")
        return False


@cli.command()
def probe(
    host: str = typer.Option("localhost", "--host", help="Server host"),
    port: int = typer.Option(1080, "--port", help="Server port"),
    timeout: float = typer.Option(10.0, "--timeout", help="Request timeout")
) -> None:
    """Ask a running server which tus version and extensions it supports."""

    async def show_capabilities(response: aiohttp.ClientResponse) -> None:
        for header in ("Tus-Version", "Tus-Extension", "Tus-Max-Size"):
            typer.echo(f"{header}: {response.headers.get(header, 'unknown')}")

    if not asyncio.run(_query_server(
            "OPTIONS", f"http://{host}:{port}/files", timeout, 204, show_capabilities, "Probe")):
        sys.exit(1)


@cli.command()
def health_check(
    host: str = typer.Option("localhost", "--host", help="Server host"),
    port: int = typer.Option(1080, "--port", help="Server port"),
    timeout: float = typer.Option(10.0, "--timeout", help="Request timeout")
) -> None:
    """Check the health of a running server."""

    async def show_health(response: aiohttp.ClientResponse) -> None:
        data = await response.json()
        typer.echo(f"Server is healthy: {data.get('status', 'unknown')}")

    if not asyncio.run(_query_server(
            "GET", f"http://{host}:{port}/health/", timeout, 200, show_health, "Health check")):
        sys.exit(1)


async def run_application(config: ApplicationConfig) -> None:
    """
    Run the application with the given configuration.

    Serves until a shutdown signal has drained the in-flight requests.

    Args:
        config: Application configuration

    Raises:
        ServerStartupError: If the listening socket cannot be acquired
    """
    container = Container()
    startup = ApplicationStartup(container)
    startup.configure_services(config)

    await startup.start_application()
    try:
        app = create_app(container, config)

        server = HTTPServer(
            app,
            host=config.server.host,
            port=config.server.port,
            shutdown_timeout=config.shutdown.timeout,
            access_log=config.server.access_log,
            log_level=config.logging.level
        )
        await server.start()
        await server.wait_closed()

    finally:
        await startup.stop_application()


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
