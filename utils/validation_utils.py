from typing import Any

from governance.enums import VoteChoice
from governance.exceptions import InvalidAddress, InvalidChoice, InvalidProposalId
from utils.formatter_utils import to_checksum_address


def validate_vote_choice(choice: Any) -> VoteChoice:
    """
    Validate a vote choice before it reaches the network.

    Args:
        choice: A VoteChoice, its integer value (1, 2, 3) or its name ("yes", "no", "abstain").

    Raises:
        InvalidChoice: If the value is not one of the three choices.
    """
    if isinstance(choice, VoteChoice):
        return choice

    # bool is an int subclass; True would otherwise pass as YES
    if isinstance(choice, bool):
        raise InvalidChoice(f"Vote choice must be one of 1, 2, 3, got {choice!r}")

    if isinstance(choice, int):
        try:
            return VoteChoice(choice)
        except ValueError:
            raise InvalidChoice(f"Vote choice must be one of 1, 2, 3, got {choice}") from None

    if isinstance(choice, str):
        return VoteChoice.from_name(choice)

    raise InvalidChoice(f"Vote choice must be one of 1, 2, 3, got {choice!r}")


def validate_proposal_id(proposal_id: Any) -> int:
    """
    Validate a proposal id (uint256 on chain).

    Raises:
        InvalidProposalId: If the id is not a non-negative integer.
    """
    if isinstance(proposal_id, bool) or not isinstance(proposal_id, int):
        raise InvalidProposalId(f"Proposal id must be an integer, got {proposal_id!r}")
    if proposal_id < 0:
        raise InvalidProposalId(f"Proposal id must be greater than or equal to 0, got {proposal_id}")
    return proposal_id


def validate_contract_address(address: Any) -> str:
    """
    Validate and checksum a governance contract address.

    Raises:
        InvalidAddress: If the value is not a 20-byte hex address.
    """
    checksummed = to_checksum_address(address)
    if checksummed is None:
        raise InvalidAddress(f"Not a valid contract address: {address!r}")
    return checksummed
