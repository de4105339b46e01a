"""CLI command: liveedit serve -- run the design-mode backend for a project."""

from __future__ import annotations

import dataclasses

import click

from liveedit.config import LiveEditConfig


@click.command()
@click.option("--root", default=".", type=click.Path(exists=True, file_okay=False), help="Project root")
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=5100, type=int, help="Port to bind to")
@click.option("--upload-dir", default=None, help="Where uploaded images are stored, relative to the root")
@click.option("--debug/--no-debug", default=False, help="Enable debug mode")
@click.pass_context
def serve(ctx: click.Context, root: str, host: str, port: int, upload_dir: str | None, debug: bool) -> None:
    """Start the design-mode backend serving ROOT."""
    from liveedit.server.app import create_app

    log_level = ctx.find_root().params.get("log_level") or LiveEditConfig.log_level
    config = LiveEditConfig(project_root=root, host=host, port=port, log_level=log_level.upper())
    if upload_dir:
        config = dataclasses.replace(config, upload_dir=upload_dir)

    app = create_app(config=config)
    click.echo(f"Serving design mode for {root} on {host}:{port}")
    app.run(host=host, port=port, debug=debug)
