"""Preprocessing of one-time signing nonces and their commitments."""

from __future__ import annotations

from .group import BASEPOINT, RandomSource, random_scalar


def generate_nonces_and_commitments(
    rng: RandomSource | None = None,
) -> tuple[tuple[int, int], tuple[bytes, bytes]]:
    """Return a pair of secret nonces and their compressed public commitments."""
    own_dij = random_scalar(rng)
    own_eij = random_scalar(rng)
    dij = own_dij * BASEPOINT
    eij = own_eij * BASEPOINT
    return (own_dij, own_eij), (dij.compress(), eij.compress())