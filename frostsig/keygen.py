"""Two-round distributed key generation for a FROST signing group.

Round 1 has every participant draw a secret polynomial, prove knowledge of
its constant term and broadcast commitments to its coefficients. Round 2
distributes polynomial evaluations as secret shares. Those shares are
checked against the commitments and summed into long-lived private keys.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from .group import (
    BASEPOINT,
    GROUP_ORDER,
    EdwardsPoint,
    RandomSource,
    decompress,
    hash_to_scalar,
    random_scalar,
)
from .message import Broadcast, FrostState, Message, SecretShare


class KeygenError(ValueError):
    """Raised when key generation data is malformed."""


@dataclass
class Participant:
    """A keygen participant: its identifier and its secret polynomial."""

    id: int
    polynomial: list[int]


def _point(data: bytes) -> EdwardsPoint:
    try:
        return decompress(data)
    except ValueError as error:
        raise KeygenError(str(error)) from error


def _id_bytes(participant_id: int) -> bytes:
    return participant_id.to_bytes(4, "little")


def _evaluate_commitments(participant_id: int, commitments: Iterable[bytes]) -> EdwardsPoint:
    total = EdwardsPoint.identity()
    for power, commitment in enumerate(commitments):
        total = total + _point(commitment) * pow(participant_id, power, GROUP_ORDER)
    return total


def generate_polynomial(state: FrostState, rng: RandomSource | None = None) -> list[int]:
    """Draw ``state.threshold`` random coefficients, constant term first."""
    return [random_scalar(rng) for _ in range(state.threshold)]


def compute_proof_of_knowledge(
    rng: RandomSource | None, participant: Participant
) -> tuple[int, int]:
    """Return the Schnorr proof ``(w, c)`` of knowledge of the constant term."""
    secret = participant.polynomial[0]
    k = random_scalar(rng)
    ri = k * BASEPOINT
    ci = hash_to_scalar(
        _id_bytes(participant.id),
        (secret * BASEPOINT).compress(),
        ri.compress(),
    )
    wi = (k + secret * ci) % GROUP_ORDER
    return wi, ci


def compute_public_commitments(participant: Participant) -> list[bytes]:
    """Return the compressed commitments ``g^a`` to each polynomial coefficient."""
    return [(coefficient * BASEPOINT).compress() for coefficient in participant.polynomial]


def _verify_proof(message: Message) -> bool:
    if not isinstance(message, Broadcast):
        return False
    if not message.commitments:
        raise KeygenError("A broadcast must carry at least one commitment.")
    wp, cp = message.signature
    first = message.commitments[0]
    rp = wp * BASEPOINT - _point(first) * cp
    reconstructed = hash_to_scalar(_id_bytes(message.participant_id), first, rp.compress())
    return reconstructed == cp


def verify_proofs(broadcasts: Iterable[Message]) -> bool:
    """Check every broadcast's proof of knowledge; non-broadcasts fail the check."""
    valid = True
    for message in broadcasts:
        valid = _verify_proof(message) and valid
    return valid


def calculate_y(x: int, polynomial: Sequence[int]) -> int:
    """Evaluate the polynomial at ``x`` with Horner's method."""
    result = 0
    for coefficient in reversed(polynomial):
        result = (result * x + coefficient) % GROUP_ORDER
    return result


def create_own_secret_share(participant: Participant) -> SecretShare:
    """Return the share a participant keeps for itself."""
    return create_share_for(participant, participant.id)


def create_share_for(sender: Participant, receiver_id: int) -> SecretShare:
    """Return the secret share ``f_sender(receiver_id)`` addressed to ``receiver_id``."""
    return SecretShare(
        sender_id=sender.id,
        receiver_id=receiver_id,
        secret=calculate_y(receiver_id, sender.polynomial),
    )


def verify_share_validity(
    participant: Participant, secret_share: Message, broadcast: Message
) -> bool:
    """Check a received share against the sender's broadcast commitments."""
    if not isinstance(secret_share, SecretShare) or not isinstance(broadcast, Broadcast):
        return False
    own = secret_share.secret * BASEPOINT
    others = _evaluate_commitments(participant.id, broadcast.commitments)
    return own == others


def compute_private_key(own_secret_share: Message, others_secret_shares: Iterable[Message]) -> int:
    """Sum a participant's own share and the shares it received."""
    if not isinstance(own_secret_share, SecretShare):
        raise KeygenError("Message was not of the desired type.")
    total = own_secret_share.secret
    for share in others_secret_shares:
        if not isinstance(share, SecretShare):
            raise KeygenError("Message was not of the desired type.")
        total += share.secret
    return total % GROUP_ORDER


def compute_own_public_share(private_key: int) -> bytes:
    """Return the compressed public verification share ``g^s``."""
    return (private_key * BASEPOINT).compress()


def compute_group_public_key(broadcasts: Iterable[Message]) -> bytes:
    """Combine the constant-term commitments into the group public key."""
    total = EdwardsPoint.identity()
    for message in broadcasts:
        if not isinstance(message, Broadcast):
            raise KeygenError("Message was not of the desired type.")
        if not message.commitments:
            raise KeygenError("A broadcast must carry at least one commitment.")
        total = _point(message.commitments[0]) + total
    return total.compress()


def compute_participant_verification_share(participant: Participant, broadcast: Message) -> bytes:
    """Evaluate a broadcast's commitments at the participant's identifier."""
    if not isinstance(broadcast, Broadcast):
        raise KeygenError("Message is not a participant broadcast.")
    return _evaluate_commitments(participant.id, broadcast.commitments).compress()


def compute_others_verification_share(verifying_shares: Iterable[bytes]) -> bytes:
    """Sum verification shares into the participant's expected public share."""
    total = EdwardsPoint.identity()
    for share in verifying_shares:
        total = total + _point(share)
    return total.compress()