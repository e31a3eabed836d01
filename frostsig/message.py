"""Messages exchanged during the FROST keygen and signing operations."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, ClassVar

from .group import scalar_from_bytes, scalar_to_bytes

_U32_MAX = 2**32 - 1


class MessageError(ValueError):
    """Raised when a message cannot be encoded or decoded."""


def _encode_point(point: bytes) -> list[int]:
    return list(point)


def _encode_scalar(value: int) -> list[int]:
    return list(scalar_to_bytes(value))


def _decode_u32(value: Any) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= _U32_MAX:
        raise MessageError(f"Expected an unsigned 32-bit integer, got {value!r}.")
    return value


def _decode_array32(value: Any) -> bytes:
    if not isinstance(value, list) or len(value) != 32:
        raise MessageError("Expected an array of 32 bytes.")
    if any(
        not isinstance(item, int) or isinstance(item, bool) or not 0 <= item <= 255
        for item in value
    ):
        raise MessageError("Expected an array of 32 bytes.")
    return bytes(value)


def _decode_scalar(value: Any) -> int:
    try:
        return scalar_from_bytes(_decode_array32(value))
    except ValueError as error:
        raise MessageError(str(error)) from error


@dataclass(frozen=True)
class Broadcast:
    """Keygen round 1 commitments and proof of knowledge of a participant."""

    participant_id: int
    commitments: tuple[bytes, ...]
    signature: tuple[int, int]

    TAG: ClassVar[str] = "Broadcast"

    def __post_init__(self) -> None:
        object.__setattr__(self, "commitments", tuple(bytes(c) for c in self.commitments))
        object.__setattr__(self, "signature", tuple(self.signature))

    def _payload(self) -> Any:
        return {
            "participant_id": self.participant_id,
            "commitments": [_encode_point(c) for c in self.commitments],
            "signature": [_encode_scalar(s) for s in self.signature],
        }

    @classmethod
    def _from_payload(cls, payload: dict[str, Any]) -> Broadcast:
        commitments = payload["commitments"]
        signature = payload["signature"]
        if not isinstance(commitments, list):
            raise MessageError("Commitments must be an array.")
        if not isinstance(signature, list) or len(signature) != 2:
            raise MessageError("Signature must be a pair of scalars.")
        return cls(
            participant_id=_decode_u32(payload["participant_id"]),
            commitments=tuple(_decode_array32(c) for c in commitments),
            signature=(_decode_scalar(signature[0]), _decode_scalar(signature[1])),
        )


@dataclass(frozen=True)
class SecretShare:
    """Keygen round 2 secret share sent from one participant to another."""

    sender_id: int
    receiver_id: int
    secret: int

    TAG: ClassVar[str] = "SecretShare"

    def _payload(self) -> Any:
        return {
            "sender_id": self.sender_id,
            "receiver_id": self.receiver_id,
            "secret": _encode_scalar(self.secret),
        }

    @classmethod
    def _from_payload(cls, payload: dict[str, Any]) -> SecretShare:
        return cls(
            sender_id=_decode_u32(payload["sender_id"]),
            receiver_id=_decode_u32(payload["receiver_id"]),
            secret=_decode_scalar(payload["secret"]),
        )


@dataclass(frozen=True)
class PublicCommitment:
    """Signing nonce commitments and public share of a participant."""

    participant_id: int
    di: bytes
    ei: bytes
    public_share: bytes

    TAG: ClassVar[str] = "PublicCommitment"

    def __post_init__(self) -> None:
        object.__setattr__(self, "di", bytes(self.di))
        object.__setattr__(self, "ei", bytes(self.ei))
        object.__setattr__(self, "public_share", bytes(self.public_share))

    def _payload(self) -> Any:
        return {
            "participant_id": self.participant_id,
            "di": _encode_point(self.di),
            "ei": _encode_point(self.ei),
            "public_share": _encode_point(self.public_share),
        }

    @classmethod
    def _from_payload(cls, payload: dict[str, Any]) -> PublicCommitment:
        return cls(
            participant_id=_decode_u32(payload["participant_id"]),
            di=_decode_array32(payload["di"]),
            ei=_decode_array32(payload["ei"]),
            public_share=_decode_array32(payload["public_share"]),
        )


@dataclass(frozen=True)
class Response:
    """A participant's signature share sent to the aggregator."""

    sender_id: int
    value: int

    TAG: ClassVar[str] = "Response"

    def _payload(self) -> Any:
        return {"sender_id": self.sender_id, "value": _encode_scalar(self.value)}

    @classmethod
    def _from_payload(cls, payload: dict[str, Any]) -> Response:
        return cls(
            sender_id=_decode_u32(payload["sender_id"]),
            value=_decode_scalar(payload["value"]),
        )


@dataclass(frozen=True)
class StateMessage:
    """The shared participant count and threshold of an operation."""

    participants: int
    threshold: int

    TAG: ClassVar[str] = "FrostState"

    def _payload(self) -> Any:
        return {"participants": self.participants, "threshold": self.threshold}

    @classmethod
    def _from_payload(cls, payload: dict[str, Any]) -> StateMessage:
        return cls(
            participants=_decode_u32(payload["participants"]),
            threshold=_decode_u32(payload["threshold"]),
        )


@dataclass(frozen=True)
class IdMessage:
    """The identifier assigned to a participant for an operation."""

    id: int

    TAG: ClassVar[str] = "Id"

    def _payload(self) -> Any:
        return self.id

    @classmethod
    def _from_payload(cls, payload: Any) -> IdMessage:
        return cls(_decode_u32(payload))


Message = Broadcast | SecretShare | PublicCommitment | Response | StateMessage | IdMessage

_VARIANTS: dict[str, type] = {
    variant.TAG: variant
    for variant in (Broadcast, SecretShare, PublicCommitment, Response, StateMessage, IdMessage)
}


@dataclass(frozen=True)
class FrostState:
    """Number of participants and signing threshold of a group."""

    participants: int
    threshold: int

    def to_message(self) -> StateMessage:
        """Return the message that carries this state."""
        return StateMessage(self.participants, self.threshold)


def to_json_string(message: Message) -> str:
    """Encode a message as a single-line JSON string."""
    if not isinstance(message, tuple(_VARIANTS.values())):
        raise MessageError(f"Not a message: {message!r}.")
    return json.dumps({message.TAG: message._payload()}, separators=(",", ":"))


def from_json_string(text: str) -> Message:
    """Decode a message from its JSON string, raising ``MessageError`` on failure."""
    try:
        document = json.loads(text)
    except json.JSONDecodeError as error:
        raise MessageError(f"Invalid JSON: {error}") from error
    if not isinstance(document, dict) or len(document) != 1:
        raise MessageError("A message must be an object with exactly one variant.")
    ((tag, payload),) = document.items()
    variant = _VARIANTS.get(tag)
    if variant is None:
        raise MessageError(f"Unknown message variant {tag!r}.")
    if variant is not IdMessage and not isinstance(payload, dict):
        raise MessageError(f"Malformed {tag} message.")
    try:
        return variant._from_payload(payload)
    except KeyError as error:
        raise MessageError(f"Missing field {error.args[0]!r} in {tag} message.") from error