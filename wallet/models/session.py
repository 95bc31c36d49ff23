from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator


class Session(BaseModel):
    model_config = ConfigDict(frozen=True)

    account: Optional[str] = None
    connected: bool = False

    @model_validator(mode="after")
    def check_account_matches_connection(self) -> "Session":
        if self.connected != (self.account is not None):
            raise ValueError("A connected session needs an account and a disconnected one has none")
        return self

    @classmethod
    def disconnected(cls) -> "Session":
        return cls(account=None, connected=False)
