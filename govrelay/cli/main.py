#!/usr/bin/env python3
"""
govrelay CLI

Usage:
    govrelay serve [--host HOST] [--port PORT]
    govrelay sweep
    govrelay watch --interval N [--max-sweeps M]
    govrelay sign-vote --proposal ID --vote for|against|abstain

Every command accepts --config FILE (TOML); environment variables and .env
override it.
"""

import asyncio
import json
import os
from pathlib import Path
from typing import Optional

import click
from eth_account import Account

from ..config import RelayerConfig, load_config
from ..constants import DEFAULT_FORWARD_GAS, GOVRELAY_HOST, GOVRELAY_PORT
from ..crypto.typed_data import sign_forward_request
from ..exceptions import GovRelayException
from ..governance.proposals import VoteType
from ..governance.scheduler import ExecutionScheduler, ResultStatus, SweepReport
from ..ledger import LedgerClient
from ..ledger.contracts import encode_vote
from ..logger import get_logger
from ..relay.types import ForwardRequest

logger = get_logger(__name__)

VOTER_KEY_ENV = "VOTER_PRIVATE_KEY"


def _config(ctx: click.Context) -> RelayerConfig:
    try:
        return load_config(ctx.obj.get("config_path"))
    except GovRelayException as e:
        raise click.ClickException(f"Invalid configuration: {e}")
    except OSError as e:
        raise click.ClickException(f"Cannot read configuration: {e}")


async def run_sweep(config: RelayerConfig) -> SweepReport:
    async with LedgerClient(config) as ledger:
        scheduler = ExecutionScheduler(ledger, concurrency=config.sweep_concurrency)
        return await scheduler.sweep()


async def watch_loop(config: RelayerConfig, interval: float, max_sweeps: Optional[int] = None) -> int:
    """
    Sweep, then sleep *interval* seconds, forever or *max_sweeps* times.
    Each sweep finishes before the next starts. A failed sweep is logged and
    the loop keeps going. Returns the number of sweeps run.
    """
    done = 0
    while max_sweeps is None or done < max_sweeps:
        try:
            report = await run_sweep(config)
            executed = len(report.by_status(ResultStatus.EXECUTED))
            logger.info(f"[Daemon] Sweep {done + 1}: {report.checked} checked, {executed} executed")
        except GovRelayException as e:
            logger.error(f"[Daemon] Sweep {done + 1} failed: {e}")
        except Exception as e:
            logger.error(f"[Daemon] Sweep {done + 1} crashed: {e}", exc_info=True)
        done += 1
        if max_sweeps is None or done < max_sweeps:
            await asyncio.sleep(interval)
    return done


async def build_signed_vote(config: RelayerConfig, private_key: str, proposal_id: int, vote: VoteType) -> dict:
    """Body for POST /relay carrying a signed vote(proposal_id, vote)."""
    voter = Account.from_key(private_key)
    async with LedgerClient(config) as ledger:
        nonce = await ledger.get_nonce(voter.address)
    request = ForwardRequest(
        sender=voter.address,
        to=config.dao_address,
        value=0,
        gas=DEFAULT_FORWARD_GAS,
        nonce=nonce,
        data=encode_vote(proposal_id, vote),
    )
    signature = sign_forward_request(request, private_key, config.chain_id, config.forwarder_address)
    return {"request": request.to_dict(), "signature": signature}


@click.group()
@click.version_option(version="1.0.0", prog_name="govrelay")
@click.option(
    "--config", "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="TOML configuration file",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path]):
    """Gasless DAO voting relay and proposal execution daemon."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@cli.command("serve")
@click.option("--host", default=str(GOVRELAY_HOST), show_default=True, help="Bind address")
@click.option("--port", default=int(GOVRELAY_PORT), show_default=True, type=int, help="Bind port")
@click.pass_context
def serve_cmd(ctx: click.Context, host: str, port: int):
    """Run the HTTP API."""
    import uvicorn

    from ..api.app import create_app

    config = _config(ctx)
    if not config.relay_configured:
        logger.warning("[API] Relayer not configured; /relay will answer 500")
    if not config.daemon_configured:
        logger.warning("[API] Daemon not configured; /execute will answer 500")

    uvicorn.run(create_app(config), host=host, port=port, access_log=False, log_config=None)


@cli.command("sweep")
@click.pass_context
def sweep_cmd(ctx: click.Context):
    """Run one execution sweep and print the JSON report.

    Exits 1 when the proposal count or execution delay cannot be read.
    """
    config = _config(ctx)
    if not config.daemon_configured:
        raise click.ClickException("Daemon not configured")
    try:
        report = asyncio.run(run_sweep(config))
    except GovRelayException as e:
        raise click.ClickException(str(e))
    click.echo(json.dumps(report.to_dict(), indent=2))


@cli.command("watch")
@click.option("--interval", "-i", type=click.FloatRange(min=0, min_open=True), required=True,
              help="Seconds between sweeps")
@click.option("--max-sweeps", type=click.IntRange(min=1), default=None,
              help="Stop after this many sweeps")
@click.pass_context
def watch_cmd(ctx: click.Context, interval: float, max_sweeps: Optional[int]):
    """Sweep periodically. Sweeps never overlap."""
    config = _config(ctx)
    if not config.daemon_configured:
        raise click.ClickException("Daemon not configured")
    try:
        asyncio.run(watch_loop(config, interval, max_sweeps))
    except KeyboardInterrupt:
        click.echo("Stopped.")


@cli.command("sign-vote")
@click.option("--proposal", "-p", "proposal_id", type=click.IntRange(min=1), required=True,
              help="Proposal id")
@click.option("--vote", "-v", type=click.Choice(["for", "against", "abstain"], case_sensitive=False),
              required=True, help="Vote option")
@click.pass_context
def sign_vote_cmd(ctx: click.Context, proposal_id: int, vote: str):
    """Sign a gasless vote and print the /relay request body.

    The voter key is read from the VOTER_PRIVATE_KEY environment variable.

    Examples:

        VOTER_PRIVATE_KEY=0x... govrelay sign-vote --proposal 3 --vote for
    """
    private_key = os.environ.get(VOTER_KEY_ENV)
    if not private_key:
        raise click.ClickException(f"{VOTER_KEY_ENV} is not set")

    config = _config(ctx)
    if not config.dao_address or not config.forwarder_address:
        raise click.ClickException("DAO and forwarder addresses must be configured")

    try:
        body = asyncio.run(build_signed_vote(config, private_key, proposal_id, VoteType.parse(vote)))
    except GovRelayException as e:
        raise click.ClickException(str(e))
    except ValueError as e:
        raise click.ClickException(f"Invalid voter key: {e}")
    click.echo(json.dumps(body, indent=2))


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
