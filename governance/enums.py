from enum import Enum, IntEnum

from governance.exceptions import InvalidChoice


class VoteChoice(IntEnum):
    YES = 1
    NO = 2
    ABSTAIN = 3

    @classmethod
    def from_name(cls, name: str) -> "VoteChoice":
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise InvalidChoice(f"Vote choice must be one of yes, no, abstain, got {name!r}") from None


class LoadState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    LOAD_FAILED = "load_failed"


class TransactionState(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class TransactionAction(str, Enum):
    CREATE_PROPOSAL = "create_proposal"
    VOTE = "vote"
