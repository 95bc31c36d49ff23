import asyncio
from typing import Optional

import click

from cli.common import dashboard_options, open_dashboard, raise_for_cli, render_snapshot
from config.settings import settings
from governance.exceptions import GovernanceError
from utils.logger_utils import configure_logging, get_logger

logger = get_logger("List Proposals CLI")


@click.command()
@dashboard_options
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the snapshot as JSON.")
def list_proposals(dao_address: str, provider_uri: str, account: Optional[str], log_file: str, as_json: bool):
    """
    Lists every proposal on the governance contract, most recent first.
    """
    configure_logging(log_file, settings.app.log_level)

    try:
        asyncio.run(_list_proposals(dao_address, provider_uri, account, as_json))
    except GovernanceError as e:
        raise_for_cli(e)
    except KeyboardInterrupt:
        logger.info("Interrupted by user.")


async def _list_proposals(dao_address: str, provider_uri: str, account: Optional[str], as_json: bool):
    async with open_dashboard(dao_address, provider_uri, account) as dashboard:
        snapshot = await dashboard.refresh()
        render_snapshot(snapshot, as_json)
