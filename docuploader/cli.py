"""
DocUploader Command-Line Interface

Runs the API server and drives a running server: containers, files, health.

Author: DocUploader Contributors
Date: 2025
"""

import mimetypes
import os
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

import click
import httpx
import uvicorn

from . import __version__
from .client import DEFAULT_BASE_URL, DEFAULT_TIMEOUT, ApiError, DocUploaderClient, UploadProgress
from .core.config_manager import DEFAULT_MAX_UPLOAD_SIZE, ConfigManager, StorageBackendType
from .core.logging_config import setup_logging
from .exceptions import DocUploaderError
from .validation import ContainerNameValidator, UploadValidator


@click.group()
@click.version_option(version=__version__, prog_name="docuploader")
@click.option(
    "--api-url",
    envvar="DOCUPLOADER_API_URL",
    default=DEFAULT_BASE_URL,
    show_default=True,
    help="Base URL of a running DocUploader server",
)
@click.option(
    "--timeout",
    default=DEFAULT_TIMEOUT,
    show_default=True,
    type=float,
    help="Request timeout in seconds",
)
@click.pass_context
def cli(ctx, api_url: str, timeout: float):
    """
    DocUploader - document uploads to Azure Blob Storage

    Serve the upload API, or manage containers and files on a running server.
    """
    ctx.ensure_object(dict)
    ctx.obj["api_url"] = api_url
    ctx.obj["timeout"] = timeout


def _make_client(ctx: click.Context) -> DocUploaderClient:
    return DocUploaderClient(base_url=ctx.obj["api_url"], timeout=ctx.obj["timeout"])


@contextmanager
def _report_errors(action: str) -> Iterator[None]:
    """Print client, server and transport errors and exit non-zero."""
    try:
        yield
    except ApiError as e:
        click.echo(f"[ERROR] {action} failed: {e.message} (HTTP {e.status_code})", err=True)
        sys.exit(1)
    except DocUploaderError as e:
        click.echo(f"[ERROR] {e.message}", err=True)
        sys.exit(1)
    except httpx.HTTPError as e:
        click.echo(f"[ERROR] {action} failed: {e}", err=True)
        sys.exit(1)


def _format_size(size: int) -> str:
    value = float(size)
    for unit in ("B", "KB", "MB"):
        if value < 1024:
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


# ========== Server ==========

@cli.command()
@click.option("--host", default=None, help="Host to bind to (default: 0.0.0.0)")
@click.option("--port", default=None, type=int, help="Port to bind to (default: 5000)")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file (YAML or JSON)",
)
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Logging level",
)
@click.option(
    "--storage",
    default=None,
    type=click.Choice([t.value for t in StorageBackendType], case_sensitive=False),
    help="Storage backend (default: azure)",
)
@click.option(
    "--reload",
    is_flag=True,
    help="Enable auto-reload on code changes (development mode)",
)
def serve(
    host: Optional[str],
    port: Optional[int],
    config: Optional[Path],
    log_level: Optional[str],
    storage: Optional[str],
    reload: bool,
):
    """
    Start the DocUploader API server.

    Examples:
        docuploader serve
        docuploader serve --port 8080 --storage memory
        docuploader serve --config docuploader.yaml --log-level DEBUG
    """
    overrides: Dict[str, Any] = {}
    if host:
        overrides.setdefault("server", {})["host"] = host
    if port:
        overrides.setdefault("server", {})["port"] = port
    if storage:
        overrides.setdefault("storage", {})["backend"] = storage.lower()
    if log_level:
        overrides.setdefault("logging", {})["level"] = log_level.upper()

    try:
        settings = ConfigManager().load(
            config_file=str(config) if config else None,
            cli_overrides=overrides,
        )
    except (ValueError, FileNotFoundError) as e:
        click.echo(f"[ERROR] Invalid configuration: {e}", err=True)
        sys.exit(1)

    setup_logging(
        level=settings.logging.level,
        format_type=settings.logging.format,
        log_file=settings.logging.file,
        rotation_size=settings.logging.rotation_size,
        rotation_count=settings.logging.rotation_count,
        module_levels=settings.logging.module_levels
    )

    click.echo(f"Starting DocUploader v{__version__}")
    click.echo(f"Host: {settings.server.host}:{settings.server.port}")
    click.echo(f"Storage: {settings.storage.backend}")
    if config:
        click.echo(f"Config: {config}")
    click.echo()

    uvicorn_log_level = str(settings.logging.level).lower()
    try:
        if reload:
            # The reloader imports the factory itself; hand the overrides over through the environment
            if config:
                os.environ["DOCUPLOADER_CONFIG"] = str(config)
            if host:
                os.environ["DOCUPLOADER_HOST"] = host
            if port:
                os.environ["DOCUPLOADER_PORT"] = str(port)
            if storage:
                os.environ["DOCUPLOADER_STORAGE_BACKEND"] = storage.lower()
            if log_level:
                os.environ["DOCUPLOADER_LOG_LEVEL"] = log_level.upper()
            uvicorn.run(
                "docuploader.app:create_app",
                host=settings.server.host,
                port=settings.server.port,
                log_level=uvicorn_log_level,
                reload=True,
                factory=True,
            )
        else:
            from .app import create_app

            app = create_app(settings)
            uvicorn.run(
                app,
                host=settings.server.host,
                port=settings.server.port,
                log_level=uvicorn_log_level,
            )
    except KeyboardInterrupt:
        click.echo("\nShutting down DocUploader...")
    except DocUploaderError as e:
        click.echo(f"[ERROR] Error starting DocUploader: {e.message}", err=True)
        sys.exit(1)


@cli.command()
@click.pass_context
def health(ctx):
    """Check that the server is up."""
    with _report_errors("Health check"), _make_client(ctx) as client:
        result = client.health()
        click.echo(f"[OK] {result.status} ({result.timestamp.isoformat()})")


# ========== Containers ==========

@cli.group()
def containers():
    """Manage containers."""


@containers.command("list")
@click.pass_context
def list_containers(ctx):
    """List all containers."""
    with _report_errors("Listing containers"), _make_client(ctx) as client:
        entries = client.list_containers()

    if not entries:
        click.echo("No containers found")
        return
    for entry in entries:
        click.echo(f"{entry.name}\t{entry.last_modified.isoformat()}")


@containers.command("create")
@click.argument("name")
@click.pass_context
def create_container(ctx, name: str):
    """
    Create a container.

    Examples:
        docuploader containers create test-docs
    """
    is_valid, error = ContainerNameValidator.validate(name)
    if not is_valid:
        click.echo(f"[ERROR] {error}", err=True)
        sys.exit(1)

    with _report_errors("Creating container"), _make_client(ctx) as client:
        result = client.create_container(name)
    click.echo(f"[OK] {result.message}: {result.name}")


# ========== Files ==========

@cli.group()
def files():
    """Upload, list, download and delete files."""


@files.command("list")
@click.argument("container")
@click.pass_context
def list_files(ctx, container: str):
    """List files in a container."""
    with _report_errors("Listing files"), _make_client(ctx) as client:
        entries = client.list_files(container)

    if not entries:
        click.echo(f"No files in '{container}'")
        return
    for entry in entries:
        click.echo(
            f"{entry.original_name}\t{_format_size(entry.size)}\t{entry.content_type}\t"
            f"{entry.last_modified.isoformat()}\t{entry.name}"
        )


@files.command("upload")
@click.argument("container")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--content-type", default=None, help="MIME type (guessed from the extension if omitted)")
@click.option(
    "--max-size",
    envvar="DOCUPLOADER_MAX_UPLOAD_SIZE",
    default=DEFAULT_MAX_UPLOAD_SIZE,
    show_default=True,
    type=click.IntRange(min=1),
    help="Upload ceiling in bytes checked before sending (match the server's setting)",
)
@click.pass_context
def upload_file(ctx, container: str, path: Path, content_type: Optional[str], max_size: int):
    """
    Upload a file. The container is created if it does not exist.

    Examples:
        docuploader files upload test-docs report.pdf
    """
    is_valid, error = ContainerNameValidator.validate(container)
    if not is_valid:
        click.echo(f"[ERROR] {error}", err=True)
        sys.exit(1)

    content_type = content_type or mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    size = path.stat().st_size
    with _report_errors("Upload"):
        UploadValidator(max_size_bytes=max_size).validate_raise(content_type, size)

    data = path.read_bytes()
    with _report_errors("Upload"), _make_client(ctx) as client:
        with click.progressbar(length=100, label=f"Uploading {path.name}") as bar:
            shown = 0

            def on_progress(progress: UploadProgress) -> None:
                nonlocal shown
                bar.update(progress.percentage - shown)
                shown = progress.percentage

            result = client.upload_file(container, path.name, data, content_type, on_progress)

    click.echo(f"[OK] {result.message}")
    click.echo(f"   Name: {result.filename}")
    click.echo(f"   Size: {_format_size(result.size)}")
    click.echo(f"   URL: {result.url}")


@files.command("download")
@click.argument("container")
@click.argument("name")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Destination file (default: the blob name in the current directory)",
)
@click.pass_context
def download_file(ctx, container: str, name: str, output: Optional[Path]):
    """Download a file by its blob name."""
    destination = output or Path(Path(name).name)
    with _report_errors("Download"), _make_client(ctx) as client:
        written = client.download_file(container, name, destination)
    click.echo(f"[OK] Saved {_format_size(written)} to {destination}")


@files.command("delete")
@click.argument("container")
@click.argument("name")
@click.pass_context
def delete_file(ctx, container: str, name: str):
    """Delete a file by its blob name."""
    with _report_errors("Delete"), _make_client(ctx) as client:
        result = client.delete_file(container, name)
    click.echo(f"[OK] {result.message}")


if __name__ == "__main__":
    cli()
