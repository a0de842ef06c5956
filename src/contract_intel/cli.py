"""
Command-line interface for contract-intel.
"""

import asyncio
from pathlib import Path
from typing import Optional

import click
import structlog

from contract_intel.config import get_settings
from contract_intel.utils.logging_config import configure_logging

logger = structlog.get_logger(__name__)


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, debug: bool) -> None:
    """contract-intel: AI analysis of legal contracts."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug

    settings = get_settings()
    configure_logging("DEBUG" if debug else settings.log_level, settings.log_json)


# =========================================================================
# Server Commands
# =========================================================================


@cli.command()
@click.option("--host", default=None, help="Host to bind to")
@click.option("--port", default=None, type=int, help="Port to bind to")
@click.option("--reload", is_flag=True, help="Enable auto-reload")
def serve(host: Optional[str], port: Optional[int], reload: bool) -> None:
    """Start the API server."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    click.echo(f"Starting contract-intel API server on {host}:{port}")

    uvicorn.run(
        "contract_intel.api.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )


# =========================================================================
# Analysis Commands
# =========================================================================


@cli.command()
@click.argument("contract_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--title", "-t", default=None, help="Contract title (defaults to the file name)")
def analyze(contract_path: str, title: Optional[str]) -> None:
    """Upload a contract file and run the full analysis on it."""
    from contract_intel.api.dependencies import build_services
    from contract_intel.exceptions import ContractIntelError

    async def run_analysis() -> int:
        services = build_services(get_settings())
        path = Path(contract_path)
        content_type = "application/pdf" if path.suffix.lower() == ".pdf" else "text/plain"

        try:
            record = await services.contracts.create_contract(path, path.name, content_type, title)
            click.echo(f"Created contract {record.id} ({len(record.raw_text)} chars)")

            outcome = await services.orchestrator.analyze(record.id)
            await services.orchestrator.wait_for_notifications()
        except ContractIntelError as e:
            click.echo(f"Error: {e}", err=True)
            return 1
        finally:
            close = getattr(services.store, "close", None)
            if close is not None:
                await close()

        if outcome.record is not None:
            click.echo(outcome.record.model_dump_json(indent=2, exclude={"raw_text"}))
        if not outcome.ok:
            click.echo(f"Analysis failed: {outcome.error}", err=True)
            return 1

        click.echo(f"Duration: {outcome.duration_seconds:.2f}s")
        return 0

    raise SystemExit(asyncio.run(run_analysis()))


@cli.command()
def stats() -> None:
    """Show dashboard statistics for the configured store."""
    from contract_intel.api.dependencies import build_services

    async def run_stats():
        services = build_services(get_settings())
        try:
            return await services.contracts.dashboard_stats()
        finally:
            close = getattr(services.store, "close", None)
            if close is not None:
                await close()

    result = asyncio.run(run_stats())

    click.echo("Dashboard")
    click.echo("=" * 40)
    click.echo(f"Total contracts:      {result.total_contracts}")
    click.echo(f"Analyzed:             {result.analyzed_contracts}")
    click.echo(f"High risk:            {result.high_risk_contracts}")
    click.echo(f"Avg compliance score: {result.avg_compliance_score:.1f}")
    click.echo(f"Upcoming deadlines:   {result.upcoming_deadlines}")


def main() -> None:
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
