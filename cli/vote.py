import asyncio
from typing import Optional

import click

from cli.common import dashboard_options, open_dashboard, raise_for_cli, render_handle, render_snapshot
from config.settings import settings
from governance.enums import TransactionState, VoteChoice
from governance.exceptions import GovernanceError
from utils.logger_utils import configure_logging, get_logger

logger = get_logger("Vote CLI")


@click.command()
@dashboard_options
@click.option("-i", "--id", "proposal_id", required=True, type=click.IntRange(min=0), help="Proposal id.")
@click.option(
    "-c",
    "--choice",
    required=True,
    type=click.Choice([c.name.lower() for c in VoteChoice], case_sensitive=False),
    help="How to vote.",
)
def vote(dao_address: str, provider_uri: str, account: Optional[str], log_file: str, proposal_id: int, choice: str):
    """
    Casts a vote on a proposal and waits for it to be included.
    """
    configure_logging(log_file, settings.app.log_level)

    try:
        asyncio.run(_vote(dao_address, provider_uri, account, proposal_id, VoteChoice.from_name(choice)))
    except GovernanceError as e:
        raise_for_cli(e)
    except KeyboardInterrupt:
        logger.info("Interrupted by user.")


async def _vote(dao_address: str, provider_uri: str, account: Optional[str], proposal_id: int, choice: VoteChoice):
    async with open_dashboard(dao_address, provider_uri, account, require_signer=True) as dashboard:
        handle = await dashboard.vote(proposal_id, choice)
        render_handle(handle)

        if handle.state == TransactionState.FAILED:
            raise click.ClickException(handle.error or "Transaction failed")

        proposal = dashboard.store.get(proposal_id)
        if proposal is not None:
            click.echo(f"#{proposal.id} now at Yes: {proposal.yes} No: {proposal.no} Abstain: {proposal.abstain}")
        else:
            render_snapshot(dashboard.store.snapshot)
