"""
allowguard/cli/listing.py

allowguard list - show the live allowances an owner has granted for a token.

Usage:
    allowguard list <token> <owner>                  Human output (default)
    allowguard list <token> <owner> --format json    Machine-readable JSON
    allowguard list <token> <owner> --from-block N   Scan history from block N
    allowguard list <token> <owner> --all            Show empty tokens too

Exit codes:
    0  Listed
    2  Error  (bad address, config, RPC failure)
"""

import asyncio
import json
import sys
from typing import Optional

import click

from allowguard.cli.runtime import CliRuntime, configure_logging
from allowguard.core.exceptions import AllowGuardError
from allowguard.session import AllowanceSession, token_is_empty


BAR = "─" * 64


# ── Shared output ─────────────────────────────────────────────────────────────

def emit_error(msg: str, fmt: str) -> None:
    """Emit error in the correct format. Never raises."""
    if fmt == "json":
        click.echo(json.dumps({"allowguard": {"error": msg}}))
    else:
        click.echo(f"\n  ❌  ERROR: {msg}\n", err=True)


def render_session(session: AllowanceSession, fmt: str) -> None:
    token = session.token
    allowances = session.allowances

    if fmt == "json":
        click.echo(json.dumps({
            "allowguard": {
                "token":      token.address,
                "symbol":     token.symbol,
                "owner":      session.owner,
                "balance":    token.display(token.balance),
                "status":     session.run.status.value if session.run else None,
                "allowances": [a.to_dict(token) for a in allowances],
            }
        }, indent=2))
        return

    click.echo()
    click.echo(f"  {token.symbol}: {token.display(token.balance)}  ·  {token.address}")
    click.echo(f"  {BAR}")
    if not allowances:
        click.echo("  No allowances")
    for allowance in allowances:
        click.echo(
            f"  {token.display(allowance.current_amount):>24}  allowance to  "
            f"{allowance.display_name}"
        )
        if allowance.display_name != allowance.spender:
            click.echo(f"  {'':>24}                {allowance.spender}")
    click.echo(f"  {BAR}")
    click.echo()


# ── CLI command ───────────────────────────────────────────────────────────────

@click.command(name="list")
@click.argument("token")
@click.argument("owner")
@click.option(
    "--from-block",
    type=int,
    default=None,
    metavar="N",
    help="First block to scan for Approval logs (default: from config).",
)
@click.option(
    "--all", "show_all",
    is_flag=True,
    default=False,
    help="Also show tokens with no balance and no allowances.",
)
@click.option(
    "--format", "fmt",
    type=click.Choice(["human", "json"], case_sensitive=False),
    default="human",
    show_default=True,
    help="Output format.",
)
@click.pass_context
def list_command(
    ctx:        click.Context,
    token:      str,
    owner:      str,
    from_block: Optional[int],
    show_all:   bool,
    fmt:        str,
) -> None:
    """
    List allowances OWNER has granted on TOKEN, largest first.

    \b
    Examples:
      allowguard list 0x6B17...1d0F 0xYourAddress
      allowguard list 0x6B17...1d0F 0xYourAddress --format json
    """
    try:
        runtime = CliRuntime.from_config(ctx.obj.get("config_path"), ctx.obj.get("rpc_url"))
        configure_logging(runtime.config, ctx.obj.get("verbose", False))
        session = asyncio.run(runtime.open_session(token, owner, from_block))
    except AllowGuardError as e:
        emit_error(str(e), fmt)
        sys.exit(2)

    if fmt == "human" and not show_all and token_is_empty(session.token, session.allowances):
        click.echo(f"  {session.token.symbol}: no balance and no allowances")
        return

    render_session(session, fmt)
