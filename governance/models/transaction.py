from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from governance.enums import TransactionAction, TransactionState


class TransactionHandle(BaseModel):
    """
    Tracks a single submitted write. A handle belongs to exactly one submission:
    once CONFIRMED or FAILED it accepts no further transitions.
    """
    model_config = ConfigDict(validate_assignment=True)

    action: TransactionAction
    tx_hash: str
    params: Dict[str, Any] = Field(default_factory=dict)
    state: TransactionState = TransactionState.PENDING
    error: Optional[str] = None
    block_number: Optional[int] = None
    # Set when the session changed while the handle was awaiting inclusion
    superseded: bool = False

    @property
    def is_terminal(self) -> bool:
        return self.state != TransactionState.PENDING

    def confirm(self, block_number: Optional[int] = None) -> None:
        self._ensure_pending()
        self.block_number = block_number
        self.state = TransactionState.CONFIRMED

    def fail(self, cause: str) -> None:
        self._ensure_pending()
        self.error = cause
        self.state = TransactionState.FAILED

    def _ensure_pending(self) -> None:
        if self.is_terminal:
            raise RuntimeError(f"Transaction {self.tx_hash} is already {self.state.value}")
