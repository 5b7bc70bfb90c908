"""Error taxonomy for the wallet backend.

Every error carries the HTTP status it is surfaced with; the API layer renders
all of them through a single exception handler.
"""

import re
from typing import Optional

# Conflict text produced by the network when a channel is already open
CHANNEL_EXISTS_PATTERN = re.compile(r"already exists[:\s]+(0x[a-fA-F0-9]{64})")


class WalletBackendError(Exception):
    """Base class for all errors raised by this service."""

    status_code = 500
    error_code = "internal_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigError(WalletBackendError):
    """Required on-chain address or setting is missing for a chain."""

    status_code = 500
    error_code = "config_error"


class ChainError(WalletBackendError):
    """RPC, signing or transaction receipt failure."""

    status_code = 502
    error_code = "chain_error"


class UnsupportedChainError(WalletBackendError):
    """Chain name is not in the registry."""

    status_code = 400
    error_code = "unsupported_chain"

    def __init__(self, chain: str):
        self.chain = chain
        super().__init__(f"Unsupported chain: {chain}")


class UnsupportedAssetError(WalletBackendError):
    """Asset is not configured for the requested chain."""

    status_code = 400
    error_code = "unsupported_asset"

    def __init__(self, asset: str, chain: str):
        self.asset = asset
        self.chain = chain
        super().__init__(f"Token {asset} not supported on chain {chain}")


class NotAuthenticatedError(WalletBackendError):
    """Off-chain ledger query failed; the caller must authenticate first."""

    status_code = 401
    error_code = "not_authenticated"

    def __init__(self, message: Optional[str] = None):
        super().__init__(
            message
            or "Not authenticated with the settlement network. "
            "Call POST /app-session/authenticate first, then retry."
        )


class ValidationError(WalletBackendError):
    """Input violates a business rule."""

    status_code = 400
    error_code = "validation_error"


class NotParticipantError(ValidationError):
    """Caller's wallet is not among the session participants."""

    error_code = "not_participant"

    def __init__(self, address: str, session_id: str):
        self.address = address
        self.session_id = session_id
        super().__init__(
            f"You are not a participant in session {session_id}. "
            f"Your wallet address ({address}) was not included when the session was created."
        )


class InvalidStateError(ValidationError):
    """Operation is not allowed in the current session state."""

    error_code = "invalid_state"


class NotFoundError(WalletBackendError):
    """Requested resource does not exist on the network."""

    status_code = 404
    error_code = "not_found"


class ChannelExistsError(WalletBackendError):
    """Channel creation conflicted with an already open channel."""

    status_code = 409
    error_code = "channel_exists"

    def __init__(self, channel_id: str):
        self.channel_id = channel_id
        super().__init__(f"Channel already exists: {channel_id}")


def extract_existing_channel_id(exc: BaseException) -> Optional[str]:
    """Recover the id of the conflicting channel from a failed create.

    Structured conflicts carry the id directly. Anything else is matched
    against the network's error text, which couples us to its wording.
    """
    if isinstance(exc, ChannelExistsError):
        return exc.channel_id
    match = CHANNEL_EXISTS_PATTERN.search(str(exc))
    return match.group(1) if match else None
