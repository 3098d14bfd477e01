"""CLI entry point for the firewall deleter."""

from __future__ import annotations

import click

from .core.enums import BusBackend


@click.group()
def main() -> None:
    """Delete AWS security groups requested over the bus."""


@main.command()
@click.option("--config", default=None, help="Config file path")
@click.option("--redis-url", default=None, help="Redis URL override")
@click.option("--dry-run", is_flag=True, help="Log deletions instead of performing them")
def run(config: str | None, redis_url: str | None, dry_run: bool) -> None:
    """Serve firewall.delete.aws until interrupted."""
    import asyncio

    from .main import run as run_service

    overrides: dict = {}
    if redis_url:
        overrides["redis_url"] = redis_url
    if dry_run:
        overrides["aws"] = {"dry_run": True}

    asyncio.run(run_service(config_path=config, overrides=overrides))


@main.command()
@click.argument("payload", type=click.File("rb"))
@click.option("--config", default=None, help="Config file path")
@click.option("--dry-run", is_flag=True, help="Log the deletion instead of performing it")
def handle(payload, config: str | None, dry_run: bool) -> None:
    """Process one request from PAYLOAD (a file, or - for stdin)."""
    import asyncio

    from .core.config import load_settings
    from .core.errors import ConnectorError
    from .main import handle_once

    overrides: dict = {"bus_backend": BusBackend.MEMORY.value}
    if dry_run:
        overrides["aws"] = {"dry_run": True}
    settings = load_settings(config_path=config, overrides=overrides)

    try:
        topic, data = asyncio.run(handle_once(payload.read(), settings))
    except ConnectorError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(topic)
    click.echo(data.decode("utf-8", errors="replace"))
    if topic != settings.topics.done:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
