"""Key material a participant keeps between keygen and signing."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .group import scalar_from_bytes, scalar_to_bytes
from .keygen import compute_group_public_key, verify_proofs
from .message import Broadcast, FrostState, Message, from_json_string, to_json_string
from .nano import Subtype, UnsignedBlock

_TAMPERED = "You are trying to perform a signature with tampered data."
_FIELDS = (
    "state",
    "public_aggregated_key",
    "own_public_share",
    "own_private_share",
    "participants_proofs",
    "subtype",
    "message",
)


@dataclass
class FrostClient:
    """The shared group state together with the client's own participant id."""

    state: FrostState
    own_id: int


def _decode_bytes32(value: Any, name: str) -> bytes:
    if (
        not isinstance(value, list)
        or len(value) != 32
        or any(not isinstance(b, int) or isinstance(b, bool) or not 0 <= b <= 255 for b in value)
    ):
        raise ValueError(f"Field {name!r} must be an array of 32 bytes.")
    return bytes(value)


def _decode_count(value: Any, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ValueError(f"Field {name!r} must be a non-negative integer.")
    return value


def _decode_state(value: Any) -> FrostState:
    if not isinstance(value, dict):
        raise ValueError("Field 'state' must be an object.")
    try:
        return FrostState(
            participants=_decode_count(value["participants"], "participants"),
            threshold=_decode_count(value["threshold"], "threshold"),
        )
    except KeyError as error:
        raise ValueError(f"Missing field {error.args[0]!r} in state.") from error


@dataclass
class SignInput:
    """Everything a participant needs from keygen to take part in a signature.

    The block to sign is a placeholder after keygen and must be filled in
    before signing.
    """

    state: FrostState
    public_aggregated_key: bytes
    own_public_share: bytes
    own_private_share: int
    participants_proofs: list[Message]
    subtype: Subtype
    message: UnsignedBlock

    @classmethod
    def from_json(cls, text: str) -> SignInput:
        """Parse a sign input document, raising ``ValueError`` if it is malformed."""
        document = json.loads(text)
        if not isinstance(document, dict):
            raise ValueError("A sign input must be a JSON object.")
        missing = [name for name in _FIELDS if name not in document]
        if missing:
            raise ValueError(f"Missing field {missing[0]!r} in sign input.")
        proofs = document["participants_proofs"]
        if not isinstance(proofs, list):
            raise ValueError("Field 'participants_proofs' must be an array.")
        try:
            subtype = Subtype(document["subtype"])
        except ValueError as error:
            raise ValueError(f"Unknown subtype {document['subtype']!r}.") from error
        return cls(
            state=_decode_state(document["state"]),
            public_aggregated_key=_decode_bytes32(
                document["public_aggregated_key"], "public_aggregated_key"
            ),
            own_public_share=_decode_bytes32(document["own_public_share"], "own_public_share"),
            own_private_share=scalar_from_bytes(
                _decode_bytes32(document["own_private_share"], "own_private_share")
            ),
            participants_proofs=[from_json_string(json.dumps(proof)) for proof in proofs],
            subtype=subtype,
            message=UnsignedBlock.from_dict(document["message"]),
        )

    def to_json(self) -> str:
        """Serialise the sign input as a JSON document."""
        document = {
            "state": {
                "participants": self.state.participants,
                "threshold": self.state.threshold,
            },
            "public_aggregated_key": list(self.public_aggregated_key),
            "own_public_share": list(self.own_public_share),
            "own_private_share": list(scalar_to_bytes(self.own_private_share)),
            "participants_proofs": [
                json.loads(to_json_string(proof)) for proof in self.participants_proofs
            ],
            "subtype": self.subtype.value,
            "message": self.message.to_dict(),
        }
        return json.dumps(document, separators=(",", ":"))

    @classmethod
    def from_file(cls, path: str | Path) -> SignInput:
        """Read a sign input from the file at ``path``."""
        return cls.from_json(Path(path).read_text(encoding="utf-8"))

    def to_file(self, path: str | Path) -> None:
        """Write the sign input to the file at ``path``."""
        Path(path).write_text(self.to_json(), encoding="utf-8")

    def verify(self) -> None:
        """Check the stored keygen data was not tampered with; raise ``ValueError`` if it was."""
        proofs = self.participants_proofs
        if not verify_proofs(proofs):
            raise ValueError(_TAMPERED)
        if not proofs or not isinstance(proofs[0], Broadcast):
            raise ValueError(_TAMPERED)
        if len(proofs[0].commitments) != self.state.threshold:
            raise ValueError(_TAMPERED)
        if compute_group_public_key(proofs) != self.public_aggregated_key:
            raise ValueError(_TAMPERED)