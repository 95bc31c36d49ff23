from typing import Any, Dict, Sequence

from governance.models.proposal import Proposal, ProposalSnapshot
from utils.formatter_utils import timestamp_to_datetime, to_checksum_address

# Output order of getProposal(uint256)
PROPOSAL_TUPLE_FIELDS = (
    "id",
    "proposer",
    "start",
    "end",
    "metadataURI",
    "yes",
    "no",
    "abstain",
    "executed",
)


class ProposalMapper(object):
    @staticmethod
    def raw_to_proposal(raw: Sequence[Any]) -> Proposal:
        """
        Maps the decoded getProposal(...) output to a Proposal.
        Either every field decodes or a ValueError is raised; nothing is partially filled.
        """
        if isinstance(raw, (str, bytes)) or not isinstance(raw, Sequence):
            raise ValueError(f"Expected a {len(PROPOSAL_TUPLE_FIELDS)}-tuple, got {type(raw).__name__}")
        if len(raw) != len(PROPOSAL_TUPLE_FIELDS):
            raise ValueError(f"Expected {len(PROPOSAL_TUPLE_FIELDS)} fields, got {len(raw)}")

        fields = dict(zip(PROPOSAL_TUPLE_FIELDS, raw))

        proposer = to_checksum_address(fields["proposer"])
        if proposer is None:
            raise ValueError(f"Invalid proposer address: {fields['proposer']!r}")
        fields["proposer"] = proposer

        if not isinstance(fields["executed"], bool):
            raise ValueError(f"Expected bool for executed, got {type(fields['executed']).__name__}")

        # pydantic ValidationError is a ValueError subclass
        return Proposal.model_validate(fields)

    @staticmethod
    def proposal_to_dict(proposal: Proposal) -> Dict[str, Any]:
        item = proposal.model_dump(by_alias=False)
        for key, timestamp in (("start_at", proposal.start), ("end_at", proposal.end)):
            try:
                item[key] = timestamp_to_datetime(timestamp).isoformat()
            except (OverflowError, OSError, ValueError):
                item[key] = None
        return item

    @staticmethod
    def snapshot_to_dict(snapshot: ProposalSnapshot) -> Dict[str, Any]:
        return {
            "dao_address": snapshot.dao_address,
            "account": snapshot.account,
            "fetched_at": snapshot.fetched_at.isoformat(),
            "proposals": [ProposalMapper.proposal_to_dict(p) for p in snapshot.proposals],
        }
