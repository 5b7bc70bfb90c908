"""App session domain."""

from tempwallet.sessions.models import (
    DEFAULT_CHALLENGE,
    DEFAULT_QUORUM,
    SESSION_KEY_WEIGHT,
    SESSION_PROTOCOL,
    Allocation,
    AllocationIntent,
    AppSession,
    OpaquePayload,
    SessionDefinition,
    SessionStatus,
    build_participant_list,
    equal_weights,
)

__all__ = [
    "DEFAULT_CHALLENGE",
    "DEFAULT_QUORUM",
    "SESSION_KEY_WEIGHT",
    "SESSION_PROTOCOL",
    "Allocation",
    "AllocationIntent",
    "AppSession",
    "OpaquePayload",
    "SessionDefinition",
    "SessionStatus",
    "build_participant_list",
    "equal_weights",
]
