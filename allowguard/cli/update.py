"""
allowguard/cli/update.py

allowguard update / revoke - change an allowance held by the signer.

The signer is the account behind ALLOWGUARD_PRIVATE_KEY; only its own
allowances can be changed.

Usage:
    allowguard update <token> <spender> 250.5
    allowguard revoke <token> <spender>

Exit codes:
    0  Change confirmed
    1  Every strategy reverted, or the call failed outright
    2  Error  (bad input, config, RPC failure)
"""

import asyncio
import sys
from typing import Optional, Tuple

import click

from allowguard.cli.listing import emit_error, render_session
from allowguard.cli.runtime import CliRuntime, configure_logging
from allowguard.core.exceptions import (
    AllowGuardError,
    ApprovalCallError,
    ConfigError,
    UpdateFailedError,
)
from allowguard.session import AllowanceSession
from allowguard.update.protocol import UpdateOutcome


async def _run_update(
    runtime:    CliRuntime,
    token:      str,
    spender:    str,
    amount:     str,
    from_block: Optional[int],
) -> Tuple[AllowanceSession, UpdateOutcome]:
    session = await runtime.open_session(token, runtime.signer, from_block)
    outcome = await session.update(spender, amount)
    return session, outcome


def _execute(ctx: click.Context, token: str, spender: str, amount: str, from_block: Optional[int]) -> None:
    fmt = "human"
    try:
        runtime = CliRuntime.from_config(ctx.obj.get("config_path"), ctx.obj.get("rpc_url"))
        configure_logging(runtime.config, ctx.obj.get("verbose", False))
        if runtime.signer is None:
            raise ConfigError("ALLOWGUARD_PRIVATE_KEY must be set to change allowances")
        session, outcome = asyncio.run(_run_update(runtime, token, spender, amount, from_block))
    except (UpdateFailedError, ApprovalCallError) as e:
        emit_error(str(e), fmt)
        sys.exit(1)
    except AllowGuardError as e:
        emit_error(str(e), fmt)
        sys.exit(2)

    symbol = session.token.symbol
    click.echo(
        f"\n  ✅  {symbol} allowance for {outcome.spender} set to "
        f"{session.token.display(outcome.target_amount)} via {outcome.strategy.value}"
    )
    render_session(session, fmt)


_from_block_option = click.option(
    "--from-block",
    type=int,
    default=None,
    metavar="N",
    help="First block to scan for Approval logs (default: from config).",
)


@click.command(name="update")
@click.argument("token")
@click.argument("spender")
@click.argument("amount")
@_from_block_option
@click.pass_context
def update_command(
    ctx:        click.Context,
    token:      str,
    spender:    str,
    amount:     str,
    from_block: Optional[int],
) -> None:
    """
    Set the signer's allowance for SPENDER on TOKEN to AMOUNT (token units).
    """
    _execute(ctx, token, spender, amount, from_block)


@click.command(name="revoke")
@click.argument("token")
@click.argument("spender")
@_from_block_option
@click.pass_context
def revoke_command(
    ctx:        click.Context,
    token:      str,
    spender:    str,
    from_block: Optional[int],
) -> None:
    """
    Revoke the signer's allowance for SPENDER on TOKEN.
    """
    _execute(ctx, token, spender, "0", from_block)
