"""FROST threshold signing: commitments, responses and their aggregation."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from .group import (
    BASEPOINT,
    GROUP_ORDER,
    EdwardsPoint,
    decompress,
    hash_to_array,
    hash_to_scalar,
    invert_scalar,
    scalar_to_bytes,
)
from .message import Message, PublicCommitment, Response


class SignError(ValueError):
    """Raised when signing data is malformed or a participant misbehaves."""


def _point(data: bytes) -> EdwardsPoint:
    try:
        return decompress(data)
    except ValueError as error:
        raise SignError(str(error)) from error


def _as_bytes(message: str | bytes) -> bytes:
    return message.encode("utf-8") if isinstance(message, str) else bytes(message)


def compute_binding_value(
    participant_commitment: Message,
    all_commitments: Iterable[Message],
    message: str | bytes,
    verifying_key: bytes,
    additional_prefix: bytes = b"",
) -> int:
    """Return the binding value of one participant for this signing operation."""
    if not isinstance(participant_commitment, PublicCommitment):
        raise SignError("Message was not of the desired type.")
    commitment_bytes = bytearray()
    for commitment in all_commitments:
        if not isinstance(commitment, PublicCommitment):
            raise SignError("Message was not a Public Commitment.")
        commitment_bytes += commitment.di
        commitment_bytes += commitment.ei
    return hash_to_scalar(
        bytes(verifying_key),
        hash_to_array(_as_bytes(message)),
        bytes(commitment_bytes),
        bytes(additional_prefix),
        participant_commitment.participant_id.to_bytes(4, "little"),
    )


def compute_group_commitment_and_challenge(
    participants_commitments: Sequence[Message],
    message: str | bytes,
    group_public_key: bytes,
    additional_prefix: bytes = b"",
) -> tuple[bytes, int]:
    """Return the compressed group commitment and the signature challenge."""
    total = EdwardsPoint.identity()
    for commitment in participants_commitments:
        if not isinstance(commitment, PublicCommitment):
            raise SignError("Message was not of the desired type.")
        binding_value = compute_binding_value(
            commitment,
            participants_commitments,
            message,
            group_public_key,
            additional_prefix,
        )
        total = total + (_point(commitment.di) + _point(commitment.ei) * binding_value)
    group_commitment = total.compress()
    challenge = hash_to_scalar(group_commitment, bytes(group_public_key), _as_bytes(message))
    return group_commitment, challenge


def lagrange_coefficient(ids: Iterable[int], target_id: int) -> int:
    """Return the Lagrange coefficient at zero of ``target_id`` among ``ids``."""
    coefficient = 1
    for other in ids:
        if other != target_id:
            coefficient = coefficient * other * invert_scalar(other - target_id) % GROUP_ORDER
    return coefficient


def compute_own_response(
    participant_id: int,
    participant_commitment: Message,
    all_commitments: Sequence[Message],
    private_key: int,
    private_nonces: tuple[int, int],
    lagrange_coefficient: int,
    challenge: int,
    message: str | bytes,
    verifying_key: bytes,
    additional_prefix: bytes = b"",
) -> Response:
    """Return a participant's signature share for the aggregator."""
    binding_value = compute_binding_value(
        participant_commitment,
        all_commitments,
        message,
        verifying_key,
        additional_prefix,
    )
    di, ei = private_nonces
    value = (di + ei * binding_value + lagrange_coefficient * private_key * challenge) % GROUP_ORDER
    return Response(sender_id=participant_id, value=value)


def verify_participant(
    participant_commitment: Message,
    all_commitments: Sequence[Message],
    message: str | bytes,
    response: Message,
    challenge: int,
    verifying_key: bytes,
    additional_prefix: bytes,
    ids: Sequence[int],
) -> bool:
    """Check a signature share; raise ``SignError`` naming a misbehaving participant."""
    if not isinstance(participant_commitment, PublicCommitment) or not isinstance(
        response, Response
    ):
        raise SignError("Failed to give the correct parameters.")
    gz = response.value * BASEPOINT
    binding_value = compute_binding_value(
        participant_commitment,
        all_commitments,
        message,
        verifying_key,
        additional_prefix,
    )
    ri = _point(participant_commitment.di) + _point(participant_commitment.ei) * binding_value
    exponent = challenge * lagrange_coefficient(ids, participant_commitment.participant_id)
    to_validate = ri + _point(participant_commitment.public_share) * exponent
    if gz != to_validate:
        raise SignError(
            f"Failed to validate participant {participant_commitment.participant_id}."
        )
    return True


def compute_aggregate_response(responses: Iterable[Message]) -> int:
    """Sum the signature shares into the group response."""
    total = 0
    for response in responses:
        if not isinstance(response, Response):
            raise SignError("Message was not of the desired type.")
        total += response.value
    return total % GROUP_ORDER


def computed_response_to_signature(aggregate_response: int, group_commitment: bytes) -> bytes:
    """Lay out the group commitment and response as a 64-byte Ed25519 signature."""
    return bytes(group_commitment) + scalar_to_bytes(aggregate_response)