"""Command line entry points."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, Optional

import aiohttp
import typer
from aiohttp import web

from zipweather_core.config import ServiceConfig
from zipweather_core.errors import ConfigError, LookupFailure
from zipweather_core.pipeline import LookupPipeline
from zipweather_core.trace_emitter import LoggingEmitter, Tracer

from .web import SERVER_OPTIONS, create_gateway_app, create_temperature_app, failure_status

app = typer.Typer(no_args_is_help=True, help="Postal code to current temperature services.")

_LOGGER = logging.getLogger(__name__)

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="YAML configuration file (defaults to environment)."),
]
LogLevelOption = Annotated[str, typer.Option("--log-level", help="Logging level.")]


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_config(path: Path | None, *, require_api_key: bool = True) -> ServiceConfig:
    try:
        if path is not None:
            return ServiceConfig.from_yaml(path, require_api_key=require_api_key)
        return ServiceConfig.from_env(require_api_key=require_api_key)
    except ConfigError as err:
        typer.echo(f"Configuration error: {err}", err=True)
        raise typer.Exit(code=2) from err


def _tracer(config: ServiceConfig) -> Tracer:
    return Tracer(config.trace, LoggingEmitter())


@app.command()
def temperature(config: ConfigOption = None, log_level: LogLevelOption = "info") -> None:
    """Serve GET /temperature/{zipcode}."""
    _setup_logging(log_level)
    settings = _load_config(config)
    _LOGGER.info("Starting temperature service on %s:%s", settings.host, settings.port)
    web.run_app(
        create_temperature_app(settings, tracer=_tracer(settings)),
        host=settings.host,
        port=settings.port,
        **SERVER_OPTIONS,
    )


@app.command()
def gateway(config: ConfigOption = None, log_level: LogLevelOption = "info") -> None:
    """Serve POST / and forward to the temperature service."""
    _setup_logging(log_level)
    settings = _load_config(config, require_api_key=False)
    _LOGGER.info(
        "Starting gateway on %s:%s -> %s",
        settings.host,
        settings.gateway_port,
        settings.temperature_service_url,
    )
    web.run_app(
        create_gateway_app(settings, tracer=_tracer(settings)),
        host=settings.host,
        port=settings.gateway_port,
        **SERVER_OPTIONS,
    )


@app.command()
def lookup(
    zipcode: Annotated[str, typer.Argument(help="8 digit postal code.")],
    config: ConfigOption = None,
    log_level: LogLevelOption = "warning",
) -> None:
    """Resolve one postal code and print the temperature as JSON."""
    _setup_logging(log_level)
    settings = _load_config(config)
    try:
        result = asyncio.run(_lookup(settings, zipcode))
    except LookupFailure as err:
        status, message = failure_status(err)
        typer.echo(f"{status} {message}: {err}", err=True)
        raise typer.Exit(code=1) from err
    typer.echo(json.dumps(result, ensure_ascii=False))


async def _lookup(settings: ServiceConfig, zipcode: str) -> dict[str, str]:
    tracer = _tracer(settings)
    async with aiohttp.ClientSession() as session:
        pipeline = LookupPipeline.from_config(session, settings, tracer=tracer)
        ctx = tracer.new_context(settings.request_timeout)
        result = await pipeline.lookup(ctx, zipcode)
    return result.to_dict()
