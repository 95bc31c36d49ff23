from datetime import datetime, timezone
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from utils.formatter_utils import timestamp_to_datetime


class Proposal(BaseModel):
    # Tallies and `executed` only ever change on chain; a reload builds a new instance
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int = Field(ge=0)
    proposer: str
    start: int = Field(ge=0, description="Voting start, unix seconds")
    end: int = Field(ge=0, description="Voting end, unix seconds")
    metadata_uri: str = Field(alias="metadataURI")
    yes: int = Field(default=0, ge=0)
    no: int = Field(default=0, ge=0)
    abstain: int = Field(default=0, ge=0)
    executed: bool = False

    @field_validator("id", "start", "end", "yes", "no", "abstain", mode="before")
    @classmethod
    def reject_non_integers(cls, v):
        # Contract numbers are uint256; float or bool would silently lose meaning
        if isinstance(v, bool) or not isinstance(v, int):
            raise ValueError(f"Expected an integer, got {type(v).__name__}")
        return v

    @model_validator(mode="after")
    def check_voting_window(self) -> "Proposal":
        if self.start > self.end:
            raise ValueError(f"Proposal {self.id} starts after it ends ({self.start} > {self.end})")
        return self

    @property
    def start_at(self) -> datetime:
        return timestamp_to_datetime(self.start)

    @property
    def end_at(self) -> datetime:
        return timestamp_to_datetime(self.end)

    @property
    def total_votes(self) -> int:
        return self.yes + self.no + self.abstain

    def is_open(self, now: Optional[int] = None) -> bool:
        """Whether votes can still be cast at `now` (unix seconds, defaults to the current time)."""
        if now is None:
            now = int(datetime.now(tz=timezone.utc).timestamp())
        return not self.executed and self.start <= now < self.end


class ProposalSnapshot(BaseModel):
    """
    One consistent read of every proposal, most recently created first.
    Replaced as a whole on each successful reload.
    """
    model_config = ConfigDict(frozen=True)

    dao_address: str
    account: Optional[str] = None
    proposals: Tuple[Proposal, ...] = ()
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))

    @model_validator(mode="after")
    def check_descending_ids(self) -> "ProposalSnapshot":
        ids = [p.id for p in self.proposals]
        if any(a <= b for a, b in zip(ids, ids[1:])):
            raise ValueError("Snapshot proposals must be ordered by strictly descending id")
        return self

    @property
    def ids(self) -> list[int]:
        return [p.id for p in self.proposals]

    def get(self, proposal_id: int) -> Optional[Proposal]:
        for proposal in self.proposals:
            if proposal.id == proposal_id:
                return proposal
        return None
