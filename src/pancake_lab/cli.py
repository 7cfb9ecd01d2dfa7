"""CLI entry point for the pancake lab."""

from __future__ import annotations

import click


@click.group()
def main() -> None:
    """Pancake Lab order service."""


@main.command()
@click.option("--config", default=None, help="Config file path (TOML)")
@click.option("--host", default=None, help="Bind address override")
@click.option("--port", default=None, type=int, help="Port override")
def serve(config: str | None, host: str | None, port: int | None) -> None:
    """Run the HTTP API."""
    import uvicorn

    from .api.app import create_app
    from .core.config import load_settings
    from .observability.logger import setup_logging

    server: dict = {}
    if host:
        server["host"] = host
    if port:
        server["port"] = port
    overrides: dict = {"server": server} if server else {}

    settings = load_settings(config_path=config, overrides=overrides)
    setup_logging(
        level=settings.observability.log_level,
        format=settings.observability.log_format,
    )

    app = create_app(settings=settings)
    uvicorn.run(
        app,
        host=settings.server.host,
        port=settings.server.port,
        timeout_graceful_shutdown=settings.server.shutdown_timeout_seconds,
        log_config=None,
    )


if __name__ == "__main__":
    main()
