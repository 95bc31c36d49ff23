import click

from cli.create_proposal import create_proposal
from cli.list_proposals import list_proposals
from cli.show_account import show_account
from cli.vote import vote


@click.group()
@click.version_option(version="0.1.0")
@click.pass_context
def cli(ctx):
    pass


# Wallet
cli.add_command(show_account, "account")

# Proposal feed
cli.add_command(list_proposals, "proposals")

# Writes
cli.add_command(create_proposal, "create-proposal")
cli.add_command(vote, "vote")
