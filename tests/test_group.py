import random

import pytest
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from frostsig.group import (
    BASEPOINT,
    GROUP_ORDER,
    EdwardsPoint,
    decompress,
    hash_to_array,
    hash_to_scalar,
    invert_scalar,
    random_scalar,
    scalar_from_bytes,
    scalar_to_bytes,
)


@pytest.fixture
def rng():
    return random.Random(2024)


def test_basepoint_encoding():
    assert BASEPOINT.compress() == bytes.fromhex("58" + "66" * 31)


def test_identity_encoding():
    assert EdwardsPoint.identity().compress() == b"\x01" + b"\x00" * 31


def test_group_order_annihilates_basepoint():
    assert GROUP_ORDER * BASEPOINT == EdwardsPoint.identity()
    assert (GROUP_ORDER + 5) * BASEPOINT == 5 * BASEPOINT


def test_compress_decompress_round_trip(rng):
    for _ in range(5):
        point = random_scalar(rng) * BASEPOINT
        assert decompress(point.compress()) == point
        assert EdwardsPoint.decompress(point.compress()).compress() == point.compress()


def test_scalar_multiplication_distributes(rng):
    a = random_scalar(rng)
    b = random_scalar(rng)
    assert (a + b) * BASEPOINT == a * BASEPOINT + b * BASEPOINT
    assert a * (b * BASEPOINT) == (a * b) * BASEPOINT


def test_subtraction_and_negation(rng):
    point = random_scalar(rng) * BASEPOINT
    assert point - point == EdwardsPoint.identity()
    assert point + (-point) == EdwardsPoint.identity()
    assert point + EdwardsPoint.identity() == point


def test_points_hash_by_encoding(rng):
    scalar = random_scalar(rng)
    first = scalar * BASEPOINT
    second = decompress(first.compress())
    assert len({first, second}) == 1


def test_decompress_rejects_wrong_length():
    with pytest.raises(ValueError):
        decompress(b"\x00" * 31)


def test_decompress_rejects_points_off_curve():
    failures = 0
    successes = 0
    for y in range(2, 50):
        encoded = y.to_bytes(32, "little")
        try:
            point = decompress(encoded)
        except ValueError:
            failures += 1
            continue
        successes += 1
        assert point.compress() == encoded
    assert failures > 0
    assert successes > 0
    assert failures + successes == 48


def test_scalar_bytes_round_trip(rng):
    value = random_scalar(rng)
    encoded = scalar_to_bytes(value)
    assert len(encoded) == 32
    assert scalar_from_bytes(encoded) == value


def test_scalar_from_bytes_rejects_non_canonical():
    with pytest.raises(ValueError):
        scalar_from_bytes(GROUP_ORDER.to_bytes(32, "little"))
    with pytest.raises(ValueError):
        scalar_from_bytes(b"\x01")


def test_invert_scalar(rng):
    value = random_scalar(rng)
    assert value * invert_scalar(value) % GROUP_ORDER == 1
    assert invert_scalar(0) == 0


def test_random_scalar_is_seeded_and_in_range():
    first = random_scalar(random.Random(1))
    second = random_scalar(random.Random(1))
    assert first == second
    assert 0 <= first < GROUP_ORDER
    assert 0 <= random_scalar() < GROUP_ORDER


def test_hash_concatenates_parts():
    assert hash_to_array(b"ab", b"c") == hash_to_array(b"abc")
    assert len(hash_to_array(b"abc")) == 64
    assert hash_to_scalar(b"a", b"bc") == hash_to_scalar(b"abc")
    assert 0 <= hash_to_scalar(b"abc") < GROUP_ORDER
    assert hash_to_scalar(b"abc") != hash_to_scalar(b"abd")


def test_schnorr_signature_verifies_as_ed25519(rng):
    secret_scalar = random_scalar(rng)
    public = (secret_scalar * BASEPOINT).compress()
    nonce = random_scalar(rng)
    commitment = (nonce * BASEPOINT).compress()
    message = b"Send Gustavo 10 bucks."
    challenge = hash_to_scalar(commitment, public, message)
    response = (nonce + challenge * secret_scalar) % GROUP_ORDER
    signature = commitment + scalar_to_bytes(response)

    key = Ed25519PublicKey.from_public_bytes(public)
    assert key.verify(signature, message) is None
    with pytest.raises(InvalidSignature):
        key.verify(signature, b"Send Gustavo 11 bucks.")