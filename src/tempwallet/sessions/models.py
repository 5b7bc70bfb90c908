"""App session domain model.

An app session is a multi-party allocation agreement hosted by the network.
The backend signs with a session key of weight 50 and defaults the quorum to
the same value, so the backend alone can approve allocation updates.
"""

import re
import time
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

from tempwallet.errors import InvalidStateError, NotParticipantError, ValidationError

SESSION_PROTOCOL = "NitroRPC/0.4"
SESSION_KEY_WEIGHT = 50
DEFAULT_QUORUM = SESSION_KEY_WEIGHT
DEFAULT_CHALLENGE = 3600

SESSION_ID_PATTERN = re.compile(r"^0x[a-fA-F0-9]{64}$")


class SessionStatus(str, Enum):
    """Status of an app session. Transitions only open -> closed."""

    OPEN = "open"
    CLOSED = "closed"


class AllocationIntent(str, Enum):
    """Purpose of an allocation update."""

    DEPOSIT = "DEPOSIT"
    OPERATE = "OPERATE"
    WITHDRAW = "WITHDRAW"


@dataclass(frozen=True)
class OpaquePayload:
    """Application data attached to a session, forwarded uninterpreted."""

    value: Any = None

    @classmethod
    def wrap(cls, value: Any) -> Optional["OpaquePayload"]:
        if value is None or isinstance(value, OpaquePayload):
            return value
        return cls(value)

    def unwrap(self) -> Any:
        return self.value


def validate_session_id(session_id: str) -> str:
    if not session_id or not SESSION_ID_PATTERN.match(session_id):
        raise ValidationError(
            f"Invalid session ID format: {session_id}. Expected 0x followed by 64 hex characters"
        )
    return session_id


def _require_address(address: str) -> None:
    if not address or not address.startswith("0x"):
        raise ValidationError(f"Invalid participant address: {address}")


@dataclass(frozen=True)
class Allocation:
    """Share of one asset assigned to one participant (human units)."""

    participant: str
    asset: str
    amount: str

    def __post_init__(self):
        _require_address(self.participant)
        if not self.asset or not self.asset.strip():
            raise ValidationError("Asset is required")
        try:
            value = Decimal(str(self.amount))
        except (InvalidOperation, ValueError):
            value = None
        if value is None or not value.is_finite() or value < 0:
            raise ValidationError(f"Invalid amount: {self.amount}. Must be a non-negative number.")

    def to_wire(self) -> dict[str, str]:
        return {
            "participant": self.participant,
            "asset": self.asset.lower(),
            "amount": str(self.amount),
        }

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> "Allocation":
        return cls(
            participant=data["participant"],
            asset=data["asset"],
            amount=str(data["amount"]),
        )


@dataclass(frozen=True)
class SessionDefinition:
    """Immutable session terms: who participates and how updates are approved."""

    participants: tuple[str, ...]
    weights: tuple[int, ...]
    quorum: int = DEFAULT_QUORUM
    challenge: int = DEFAULT_CHALLENGE
    nonce: int = 0
    protocol: str = SESSION_PROTOCOL

    def __post_init__(self):
        if not self.protocol or not self.protocol.strip():
            raise ValidationError("Protocol is required")
        if not self.participants:
            raise ValidationError("Session must have at least one participant")
        for participant in self.participants:
            _require_address(participant)
        if len(self.weights) != len(self.participants):
            raise ValidationError(
                f"Weights array length ({len(self.weights)}) must match "
                f"participants array length ({len(self.participants)})"
            )
        for weight in self.weights:
            if weight <= 0:
                raise ValidationError(f"All weights must be positive. Found: {weight}")
        if not 1 <= self.quorum <= 100:
            raise ValidationError(f"Quorum must be between 1 and 100. Found: {self.quorum}")
        if self.challenge <= 0:
            raise ValidationError(f"Challenge period must be positive. Found: {self.challenge}")
        if self.nonce <= 0:
            raise ValidationError(f"Nonce must be positive. Found: {self.nonce}")

    def is_participant(self, address: str) -> bool:
        needle = address.lower()
        return any(p.lower() == needle for p in self.participants)

    def participant_weight(self, address: str) -> Optional[int]:
        needle = address.lower()
        for participant, weight in zip(self.participants, self.weights):
            if participant.lower() == needle:
                return weight
        return None

    def to_wire(self) -> dict[str, Any]:
        return {
            "protocol": self.protocol,
            "participants": list(self.participants),
            "weights": list(self.weights),
            "quorum": self.quorum,
            "challenge": self.challenge,
            "nonce": self.nonce,
        }

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> "SessionDefinition":
        return cls(
            protocol=data.get("protocol", SESSION_PROTOCOL),
            participants=tuple(data["participants"]),
            weights=tuple(int(w) for w in data["weights"]),
            quorum=int(data.get("quorum", DEFAULT_QUORUM)),
            challenge=int(data.get("challenge", DEFAULT_CHALLENGE)),
            nonce=int(data["nonce"]),
        )


def build_participant_list(creator: str, participants: list[str]) -> list[str]:
    """Creator first, then the rest, deduplicated case-insensitively.

    The first spelling of each address is kept.
    """
    result: list[str] = []
    seen: set[str] = set()
    for address in [creator, *participants]:
        key = address.lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(address)
    return result


def equal_weights(count: int) -> list[int]:
    """Equal voting weight for ``count`` participants, each at least 1."""
    if count <= 0:
        return []
    return [max(1, 100 // count)] * count


def new_nonce() -> int:
    """Nonce for a new session: current time in milliseconds."""
    return int(time.time() * 1000)


@dataclass
class AppSession:
    """A multi-party app session as seen by this service."""

    app_session_id: str
    definition: SessionDefinition
    allocations: list[Allocation] = field(default_factory=list)
    version: int = 1
    status: SessionStatus = SessionStatus.OPEN
    session_data: Optional[OpaquePayload] = None

    def __post_init__(self):
        self._check_allocations(self.allocations)

    def _check_allocations(self, allocations: list[Allocation]) -> None:
        for allocation in allocations:
            if not self.definition.is_participant(allocation.participant):
                raise ValidationError(
                    f"Allocation participant {allocation.participant} "
                    "is not in session participants"
                )

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> "AppSession":
        return cls(
            app_session_id=data["app_session_id"],
            definition=SessionDefinition.from_wire(data["definition"]),
            allocations=[Allocation.from_wire(a) for a in data.get("allocations") or []],
            version=int(data.get("version", 1)),
            status=SessionStatus(data.get("status", "open")),
            session_data=OpaquePayload.wrap(data.get("session_data")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Internal (camelCase-free) result shape returned by the services."""
        return {
            "app_session_id": self.app_session_id,
            "status": self.status.value,
            "version": self.version,
            "definition": self.definition.to_wire(),
            "allocations": [a.to_wire() for a in self.allocations],
            "session_data": self.session_data.unwrap() if self.session_data else None,
        }

    @property
    def is_open(self) -> bool:
        return self.status == SessionStatus.OPEN

    def require_participant(self, address: str) -> None:
        if not self.definition.is_participant(address):
            raise NotParticipantError(address, self.app_session_id)

    def require_open(self, action: str = "update") -> None:
        if not self.is_open:
            raise InvalidStateError(f"Cannot {action} session in {self.status.value} state")

    def update_allocations(self, allocations: list[Allocation]) -> None:
        self.require_open("update")
        self._check_allocations(allocations)
        self.allocations = list(allocations)
        self.version += 1

    def close(self) -> None:
        self.require_open("close")
        self.status = SessionStatus.CLOSED

    def get_allocation(self, participant: str, asset: str) -> Optional[Allocation]:
        for allocation in self.allocations:
            if (
                allocation.participant.lower() == participant.lower()
                and allocation.asset.lower() == asset.lower()
            ):
                return allocation
        return None
