import json
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import click

from config.settings import settings
from governance.dashboard import GovernanceDashboard
from governance.exceptions import GovernanceError, UserRejected
from governance.mappers.proposal_mapper import ProposalMapper
from governance.models.proposal import ProposalSnapshot
from governance.models.transaction import TransactionHandle
from utils.formatter_utils import format_timestamp
from utils.logger_utils import get_logger
from wallet.provider import NodeWalletProvider
from wallet.session import WalletSession

logger = get_logger("Dashboard CLI")


DASHBOARD_OPTIONS = (
    click.option(
        "-d",
        "--dao",
        "dao_address",
        default=settings.governance.dao_address,
        required=settings.governance.dao_address is None,
        type=str,
        help="Governance contract address.",
    ),
    click.option(
        "-p",
        "--provider-uri",
        default=settings.ethereum.provider_uri,
        show_default=True,
        type=str,
        help="JSON-RPC URL of a node with unlocked accounts.",
    ),
    click.option(
        "-a",
        "--account",
        default=settings.ethereum.account,
        type=str,
        help="Account to act as. Defaults to the node's first account.",
    ),
    click.option("--log-file", default=settings.app.log_file, show_default=True, type=str, help="Path to the log file."),
)


def dashboard_options(func):
    """Options shared by every command that talks to a governance contract."""
    for option in reversed(DASHBOARD_OPTIONS):
        func = option(func)
    return func


@asynccontextmanager
async def open_dashboard(
    dao_address: Optional[str],
    provider_uri: str,
    account: Optional[str],
    require_signer: bool = False,
) -> AsyncIterator[GovernanceDashboard]:
    provider = NodeWalletProvider(provider_uri, timeout=settings.ethereum.rpc_timeout, preferred_account=account)
    dashboard = GovernanceDashboard(
        WalletSession(provider),
        max_concurrent_reads=settings.governance.max_concurrent_reads,
        confirmation_timeout=settings.governance.confirmation_timeout_seconds,
        poll_latency=settings.governance.poll_latency_seconds,
    )

    try:
        try:
            await dashboard.connect()
        except UserRejected:
            if require_signer:
                raise
            logger.warning("No account authorized by the node, continuing read-only.")

        if dao_address:
            dashboard.set_dao_address(dao_address)
        yield dashboard
    finally:
        await provider.disconnect()


def raise_for_cli(e: GovernanceError) -> None:
    raise click.ClickException(f"{type(e).__name__}: {e}") from e


def render_snapshot(snapshot: Optional[ProposalSnapshot], as_json: bool = False) -> None:
    if snapshot is None:
        click.echo("Proposal feed changed while loading; run the command again.")
        return

    if as_json:
        click.echo(json.dumps(ProposalMapper.snapshot_to_dict(snapshot), indent=2))
        return

    click.echo(f"\n--- Proposals on {snapshot.dao_address} ---")
    if not snapshot.proposals:
        click.echo("No proposals")
    for proposal in snapshot.proposals:
        status = "executed" if proposal.executed else ("open" if proposal.is_open() else "closed")
        click.echo(f"#{proposal.id} - {proposal.metadata_uri} [{status}]")
        click.echo(f"    Proposer: {proposal.proposer}")
        click.echo(f"    Yes: {proposal.yes} No: {proposal.no} Abstain: {proposal.abstain}")
        click.echo(f"    Votes end: {format_timestamp(proposal.end)}")
    click.echo("------------------------------------\n")


def render_handle(handle: TransactionHandle) -> None:
    click.echo(f"{handle.action.value}: {handle.state.value} ({handle.tx_hash})")
    if handle.block_number is not None:
        click.echo(f"    Included in block {handle.block_number}")
    if handle.error:
        click.echo(f"    Cause: {handle.error}")
    if handle.superseded:
        click.echo("    The wallet account changed while this transaction was pending.")
