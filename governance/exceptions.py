class GovernanceError(Exception):
    """Base class for every error the dashboard surfaces to the operator."""


class NoProviderFound(GovernanceError):
    def __init__(self, message: str = "No injected wallet provider found"):
        super().__init__(message)


class UserRejected(GovernanceError):
    def __init__(self, message: str = "The wallet declined the account request"):
        super().__init__(message)


class WalletRequestFailed(GovernanceError):
    """The wallet provider failed for a reason other than the user declining."""


class NoSigner(GovernanceError):
    def __init__(self, message: str = "Connect a wallet first"):
        super().__init__(message)


class InvalidChoice(GovernanceError):
    """Raised client-side, before any network call."""


class InvalidAddress(GovernanceError):
    pass


class InvalidProposalId(GovernanceError):
    """Raised client-side when a proposal id is not a uint256."""


class ReadFailed(GovernanceError):
    """RPC or decoding error on a view call."""


class SubmissionRejected(GovernanceError):
    """The signer or the network declined the write before inclusion."""


class TransactionFailed(GovernanceError):
    """The write was included but reverted, or timed out awaiting inclusion."""
