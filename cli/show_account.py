import asyncio
from typing import Optional

import click

from cli.common import raise_for_cli
from config.settings import settings
from governance.exceptions import GovernanceError
from utils.logger_utils import configure_logging
from wallet.provider import NodeWalletProvider
from wallet.session import WalletSession


@click.command()
@click.option("-p", "--provider-uri", default=settings.ethereum.provider_uri, show_default=True, type=str)
@click.option("-a", "--account", default=settings.ethereum.account, type=str)
@click.option("--log-file", default=settings.app.log_file, show_default=True, type=str, help="Path to the log file.")
def show_account(provider_uri: str, account: Optional[str], log_file: str):
    """
    Connects to the wallet and prints the account writes would be sent from.
    """
    configure_logging(log_file, settings.app.log_level)

    try:
        asyncio.run(_show_account(provider_uri, account))
    except GovernanceError as e:
        raise_for_cli(e)


async def _show_account(provider_uri: str, account: Optional[str]):
    provider = NodeWalletProvider(provider_uri, timeout=settings.ethereum.rpc_timeout, preferred_account=account)
    try:
        session = await WalletSession(provider).connect()
        click.echo(f"Connected: {session.account}")
    finally:
        await provider.disconnect()
