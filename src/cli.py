"""CLI interface for sitedash."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn
from rich.table import Table

from sitedash.client import ContentAPIClient, PersistenceCache, SyncClient, SyncResult
from sitedash.config import SiteDashConfig, load_config, merge_cli_overrides
from sitedash.content.models import ContentRecord
from sitedash.errors import SiteDashError
from sitedash.media import MediaUploader, optimized_url

app = typer.Typer(
    name="sitedash",
    help="Edit website content locally and sync it with the content server.",
)
nav_app = typer.Typer(help="Edit the navigation links.")
app.add_typer(nav_app, name="nav")

console = Console()


class _State:
    config: SiteDashConfig = SiteDashConfig()


state = _State()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from sitedash import __version__

        console.print(f"sitedash {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to a .sitedash.toml file."),
    ] = None,
    api_url: Annotated[
        Optional[str],
        typer.Option("--api-url", help="Base URL of the content server."),
    ] = None,
    cache_dir: Annotated[
        Optional[str],
        typer.Option("--cache-dir", help="Directory holding the local working copy."),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Enable debug logging."),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """sitedash - website content dashboard."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = load_config(config_path)
    state.config = merge_cli_overrides(config, api_url=api_url, cache_dir=cache_dir)


def _sync_client() -> SyncClient:
    client_cfg = state.config.client
    api = ContentAPIClient(client_cfg.api_url, timeout=client_cfg.timeout)
    cache = PersistenceCache(Path(client_cfg.cache_dir).expanduser())
    return SyncClient(api, cache)


def _render(record: ContentRecord) -> None:
    console.print(f"[bold]{record.header.title}[/bold]")
    console.print(f"  image: {record.header.image_url}")

    table = Table(title="Navigation")
    table.add_column("#", justify="right")
    table.add_column("Label")
    table.add_column("URL")
    for i, link in enumerate(record.navbar, 1):
        table.add_row(str(i), link.label, link.url)
    console.print(table)

    console.print(f"  email:   {record.footer.email}")
    console.print(f"  phone:   {record.footer.phone}")
    console.print(f"  address: {record.footer.address}")


def _report(result: SyncResult, success_message: str) -> None:
    if not result.success:
        console.print(f"[red]Error:[/red] {result.error}")
        raise typer.Exit(1)
    console.print(f"[green]{success_message}[/green]")


@app.command()
def serve(
    host: Annotated[Optional[str], typer.Option("--host", help="Bind address.")] = None,
    port: Annotated[Optional[int], typer.Option("--port", "-p", help="Port.")] = None,
    dev: Annotated[
        bool,
        typer.Option("--dev", help="Development mode: include error details in responses."),
    ] = False,
) -> None:
    """Run the content server."""
    from sitedash.server import run

    config = merge_cli_overrides(
        state.config, host=host, port=port, environment="development" if dev else None
    )
    console.print(
        f"Serving on http://{config.server.host}:{config.server.port} "
        f"(API: /api/components, health: /health)"
    )
    run(config.server)


@app.command()
def show() -> None:
    """Show the local working copy."""
    _render(_sync_client().working_copy)


@app.command()
def pull() -> None:
    """Load content from the server, discarding unsaved local edits."""
    client = _sync_client()
    result = client.load_from_remote()
    _report(result, "Loaded content from server.")
    _render(client.working_copy)


@app.command()
def push() -> None:
    """Save the local working copy to the server."""
    client = _sync_client()
    result = client.save_to_remote()
    _report(result, "Saved content to server.")


@app.command()
def reset(
    local: Annotated[
        bool,
        typer.Option("--local", help="Only reset the local working copy."),
    ] = False,
) -> None:
    """Reset content to the built-in defaults."""
    client = _sync_client()
    if local:
        client.reset_local_to_defaults()
        console.print("[green]Local content reset to defaults.[/green]")
        return
    _report(client.reset_local_and_remote(), "Server and local content reset to defaults.")


@app.command()
def header(
    title: Annotated[Optional[str], typer.Option("--title", help="Header title.")] = None,
    image_url: Annotated[
        Optional[str], typer.Option("--image-url", help="Header image URL.")
    ] = None,
) -> None:
    """Edit the header in the local working copy."""
    updated = _sync_client().update_header(title=title, image_url=image_url)
    console.print(f"Header: [bold]{updated.title}[/bold] ({updated.image_url})")


@app.command()
def footer(
    email: Annotated[Optional[str], typer.Option("--email")] = None,
    phone: Annotated[Optional[str], typer.Option("--phone")] = None,
    address: Annotated[Optional[str], typer.Option("--address")] = None,
) -> None:
    """Edit the footer in the local working copy."""
    updated = _sync_client().update_footer(email=email, phone=phone, address=address)
    console.print(f"Footer: {updated.email} | {updated.phone} | {updated.address}")


@nav_app.command("set")
def nav_set(
    links: Annotated[
        list[str],
        typer.Argument(help="Links as LABEL=URL, in display order."),
    ],
) -> None:
    """Replace all navigation links."""
    parsed = []
    for item in links:
        label, sep, url = item.partition("=")
        if not sep:
            console.print(f"[red]Error:[/red] Expected LABEL=URL, got '{item}'")
            raise typer.Exit(1)
        parsed.append({"label": label, "url": url})
    navbar = _sync_client().update_navbar(parsed)
    console.print(f"Navigation: {', '.join(link.label for link in navbar)}")


@nav_app.command("add")
def nav_add(
    label: Annotated[str, typer.Argument(help="Link label.")],
    url: Annotated[str, typer.Argument(help="Link target.")],
) -> None:
    """Append a navigation link."""
    client = _sync_client()
    navbar = client.update_navbar([*client.working_copy.navbar, {"label": label, "url": url}])
    console.print(f"Navigation: {', '.join(link.label for link in navbar)}")


@nav_app.command("remove")
def nav_remove(
    index: Annotated[int, typer.Argument(help="1-based position of the link.")],
) -> None:
    """Remove a navigation link by position."""
    client = _sync_client()
    links = list(client.working_copy.navbar)
    if not 1 <= index <= len(links):
        console.print(f"[red]Error:[/red] No link at position {index}")
        raise typer.Exit(1)
    del links[index - 1]
    navbar = client.update_navbar(links)
    console.print(f"Navigation: {', '.join(link.label for link in navbar)}")


@app.command()
def upload(
    file: Annotated[
        Path,
        typer.Argument(exists=True, dir_okay=False, resolve_path=True, help="Image file."),
    ],
    set_header: Annotated[
        bool,
        typer.Option("--set-header", help="Use the uploaded URL as the header image."),
    ] = False,
    folder: Annotated[Optional[str], typer.Option("--folder", help="Target folder.")] = None,
) -> None:
    """Upload an image to the media host."""
    uploader = MediaUploader(state.config.to_media_config())
    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    ) as progress:
        task = progress.add_task(f"Uploading {file.name}", total=100)

        class _Sink:
            def update(self, percent: int) -> None:
                progress.update(task, completed=percent)

        try:
            url = uploader.upload(file, progress=_Sink(), folder=folder)
        except SiteDashError as exc:
            progress.stop()
            console.print(f"[red]Error:[/red] {exc}")
            raise typer.Exit(1) from exc

    console.print(f"[green]Uploaded:[/green] {url}")
    console.print(f"Optimized: {optimized_url(url)}")
    if set_header:
        _sync_client().update_header(image_url=url)
        console.print("Header image updated in the local working copy (run 'push' to save).")


@app.command()
def health() -> None:
    """Check the content server's health endpoint."""
    api = ContentAPIClient(state.config.client.api_url, timeout=state.config.client.timeout)
    try:
        result = api.check_health()
    except SiteDashError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1) from exc
    console.print(f"[green]{result.get('status', 'unknown')}[/green] uptime {result.get('uptime', 0):.0f}s")


@app.command("media-status")
def media_status() -> None:
    """Show whether image uploads are configured."""
    status = MediaUploader(state.config.to_media_config()).status()
    for key in ("cloud_name", "upload_preset"):
        mark = "[green]set[/green]" if status[key] else "[red]missing[/red]"
        console.print(f"{key}: {mark}")
    if not status["configured"]:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
