"""CLI interface for miniblog."""

import logging
from pathlib import Path
from typing import Annotated, Optional
from xmlrpc.server import SimpleXMLRPCServer

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from miniblog.auth import credential_checker, hash_password
from miniblog.config import MiniblogConfig, load_config, merge_cli_overrides
from miniblog.integrations.metaweblog import MetaWeblogProvider, register_metaweblog
from miniblog.posts.service import BlogService
from miniblog.posts.xmlformat import format_datetime
from miniblog.storage import create_storage

app = typer.Typer(
    name="miniblog",
    help="Manage a file-backed blog and serve it to MetaWeblog editors.",
)

console = Console()

_state: dict[str, object] = {}


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from miniblog import __version__

        console.print(f"miniblog {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to a .miniblog.toml file."),
    ] = None,
    storage_dir: Annotated[
        Optional[str],
        typer.Option("--dir", "-d", help="Posts folder (file backend)."),
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
    """Miniblog - a small file-backed blog engine."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    config = load_config(config_path)
    _state["config"] = merge_cli_overrides(config, storage_dir=storage_dir)


def _config() -> MiniblogConfig:
    config = _state.get("config")
    if not isinstance(config, MiniblogConfig):
        config = load_config()
        _state["config"] = config
    return config


def _service(admin: bool = False) -> BlogService:
    config = _config()
    try:
        storage = create_storage(config.storage)
    except ValueError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1) from exc
    return BlogService(storage, is_admin=lambda: admin)


@app.command()
def posts(
    count: Annotated[
        Optional[int],
        typer.Option("--count", "-n", help="Number of posts (defaults to posts_per_page)."),
    ] = None,
    skip: Annotated[int, typer.Option("--skip", help="Posts to skip.")] = 0,
    admin: Annotated[bool, typer.Option("--admin", help="Include drafts.")] = False,
) -> None:
    """List visible posts, newest first."""
    blog = _config().blog
    service = _service(admin)
    results = service.get_posts(blog.posts_per_page if count is None else count, skip)
    if not results:
        console.print("[yellow]No posts found.[/yellow]")
        return

    table = Table(title=blog.name, caption=blog.description)
    table.add_column("Published")
    table.add_column("Id")
    table.add_column("Slug")
    table.add_column("Title")
    table.add_column("Categories")
    for post in results:
        state = format_datetime(post.pub_date) if post.is_published else "draft"
        table.add_row(state, post.id, post.slug, post.title, ", ".join(post.categories))
    console.print(table)


@app.command()
def show(
    slug: Annotated[str, typer.Argument(help="Post slug.")],
    admin: Annotated[bool, typer.Option("--admin", help="Include drafts.")] = False,
) -> None:
    """Show a single post."""
    blog = _config().blog
    post = _service(admin).get_post_by_slug(slug)
    if post is None:
        console.print(f"[red]Error:[/red] Post not found: {slug}")
        raise typer.Exit(1)

    console.print(f"[bold]{post.title}[/bold]")
    console.print(f"  By: {blog.owner}")
    console.print(f"  Id: {post.id}")
    console.print(f"  Link: {blog.base_url.rstrip('/')}{post.get_encoded_link()}")
    console.print(f"  Published: {format_datetime(post.pub_date)}")
    console.print(f"  Last modified: {format_datetime(post.last_modified)}")
    if post.categories:
        console.print(f"  Categories: {', '.join(post.categories)}")
    state = "open" if post.are_comments_open(blog.comments_close_after_days) else "closed"
    console.print(f"  Comments: {len(post.comments)} ({state})")
    console.print()
    console.print(post.content, markup=False)
    for comment in post.comments:
        console.print()
        console.print(
            f"{comment.author} ({comment.get_gravatar()}) {format_datetime(comment.pub_date)}",
            markup=False,
        )
        console.print(comment.content, markup=False)


@app.command()
def categories(
    admin: Annotated[bool, typer.Option("--admin", help="Include drafts.")] = False,
) -> None:
    """List categories of visible posts."""
    found = sorted(_service(admin).get_categories())
    if not found:
        console.print("[yellow]No categories found.[/yellow]")
        return
    for category in found:
        console.print(f"  - {category}")


@app.command()
def delete(
    post_id: Annotated[str, typer.Argument(help="Post id (file stem).")],
) -> None:
    """Delete a post."""
    service = _service(admin=True)
    post = service.get_post_by_id(post_id)
    if post is None:
        console.print(f"[red]Error:[/red] Post not found: {post_id}")
        raise typer.Exit(1)
    service.delete_post(post)
    console.print(f"[green]Deleted[/green] {post_id}")


@app.command()
def upload(
    file: Annotated[Path, typer.Argument(help="File to upload.", exists=True, dir_okay=False)],
    suffix: Annotated[
        Optional[str], typer.Option("--suffix", help="Name suffix (defaults to a timestamp).")
    ] = None,
) -> None:
    """Store a file as a blog asset and print its address."""
    address = _service().save_asset(file.read_bytes(), file.name, suffix)
    console.print(address)


@app.command(name="hash-password")
def hash_password_cmd(
    password: Annotated[str, typer.Argument(help="Plain-text password.")],
    salt: Annotated[str, typer.Option("--salt", help="Salt stored next to the hash.")],
) -> None:
    """Print the hash to put in the [user] config section."""
    console.print(hash_password(password, salt))


@app.command()
def serve(
    host: Annotated[str, typer.Option("--host", help="Interface to bind.")] = "127.0.0.1",
    port: Annotated[int, typer.Option("--port", "-p", help="Port to listen on.")] = 8000,
) -> None:
    """Serve the MetaWeblog XML-RPC endpoint."""
    config = _config()
    provider = MetaWeblogProvider(
        _service(),
        credential_checker(config.user),
        blog_name=config.blog.name,
        base_url=config.blog.base_url,
    )
    with SimpleXMLRPCServer((host, port), allow_none=True, logRequests=False) as server:
        register_metaweblog(server, provider)
        console.print(f"[green]MetaWeblog endpoint on http://{host}:{port}/[/green]")
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            console.print("Stopped.")


if __name__ == "__main__":
    app()
