import asyncio
from typing import Optional

import click

from cli.common import dashboard_options, open_dashboard, raise_for_cli, render_handle, render_snapshot
from config.settings import settings
from governance.enums import TransactionState
from governance.exceptions import GovernanceError
from utils.logger_utils import configure_logging, get_logger

logger = get_logger("Create Proposal CLI")


@click.command()
@dashboard_options
@click.option("-u", "--uri", "metadata_uri", required=True, type=str, help="Proposal metadata: ipfs://... or plain text.")
def create_proposal(dao_address: str, provider_uri: str, account: Optional[str], log_file: str, metadata_uri: str):
    """
    Submits a new proposal and waits for it to be included.
    """
    configure_logging(log_file, settings.app.log_level)

    try:
        asyncio.run(_create_proposal(dao_address, provider_uri, account, metadata_uri))
    except GovernanceError as e:
        raise_for_cli(e)
    except KeyboardInterrupt:
        logger.info("Interrupted by user.")


async def _create_proposal(dao_address: str, provider_uri: str, account: Optional[str], metadata_uri: str):
    async with open_dashboard(dao_address, provider_uri, account, require_signer=True) as dashboard:
        handle = await dashboard.create_proposal(metadata_uri)
        render_handle(handle)

        if handle.state == TransactionState.FAILED:
            raise click.ClickException(handle.error or "Transaction failed")
        render_snapshot(dashboard.store.snapshot)
