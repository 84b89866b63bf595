"""
allowguard/cli/__init__.py

AllowGuard CLI - root Click command group.

Registered in pyproject.toml as:

    [project.scripts]
    allowguard = "allowguard.cli:cli"

Adding a new command:
    1. Create allowguard/cli/your_command.py with a @click.command()
    2. Import it here
    3. cli.add_command(your_command)
"""

from pathlib import Path
from typing import Optional

import click

from allowguard.cli.listing import list_command
from allowguard.cli.update import revoke_command, update_command


@click.group()
@click.version_option(package_name="allowguard")
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML config file.",
)
@click.option(
    "--rpc",
    "rpc_url",
    default=None,
    metavar="URL",
    help="JSON-RPC endpoint (overrides config and ALLOWGUARD_RPC_URL).",
)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Debug logging.")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], rpc_url: Optional[str], verbose: bool) -> None:
    """
    AllowGuard - inspect and change ERC-20 allowances.

    \b
    Commands:
      list      Live allowances an owner has granted on a token.
      update    Change one of the signer's allowances.
      revoke    Set one of the signer's allowances to zero.

    \b
    Quick start:
      allowguard list 0xToken 0xOwner
      ALLOWGUARD_PRIVATE_KEY=0x... allowguard revoke 0xToken 0xSpender
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["rpc_url"] = rpc_url
    ctx.obj["verbose"] = verbose


cli.add_command(list_command)
cli.add_command(update_command)
cli.add_command(revoke_command)
