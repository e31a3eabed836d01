import random

import pytest

from frostsig.group import BASEPOINT, GROUP_ORDER, EdwardsPoint, decompress
from frostsig.keygen import (
    KeygenError,
    Participant,
    calculate_y,
    compute_group_public_key,
    compute_others_verification_share,
    compute_own_public_share,
    compute_participant_verification_share,
    compute_private_key,
    compute_proof_of_knowledge,
    compute_public_commitments,
    create_own_secret_share,
    create_share_for,
    generate_polynomial,
    verify_proofs,
    verify_share_validity,
)
from frostsig.message import Broadcast, FrostState, Response, SecretShare


def _invalid_point() -> bytes:
    for y in range(2, 200):
        candidate = y.to_bytes(32, "little")
        try:
            decompress(candidate)
        except ValueError:
            return candidate
    raise AssertionError("no invalid encoding found")


def _participant(rng, ident, state):
    participant = Participant(ident, generate_polynomial(state, rng))
    broadcast = Broadcast(
        participant_id=ident,
        commitments=compute_public_commitments(participant),
        signature=compute_proof_of_knowledge(rng, participant),
    )
    return participant, broadcast


@pytest.fixture
def group():
    rng = random.Random(20240601)
    state = FrostState(3, 2)
    walter, walter_broadcast = _participant(rng, 1, state)
    jessie, jessie_broadcast = _participant(rng, 2, state)
    skylar, skylar_broadcast = _participant(rng, 3, state)
    return {
        "state": state,
        "participants": [walter, jessie, skylar],
        "broadcasts": [walter_broadcast, jessie_broadcast, skylar_broadcast],
    }


def test_keygen_flow(group):
    walter, jessie, skylar = group["participants"]
    walter_b, jessie_b, skylar_b = group["broadcasts"]

    assert verify_proofs([jessie_b, skylar_b])
    assert verify_proofs([walter_b, skylar_b])
    assert verify_proofs([walter_b, jessie_b])

    by_id = {1: (walter, walter_b), 2: (jessie, jessie_b), 3: (skylar, skylar_b)}
    public_keys = {}
    for ident, (participant, _) in by_id.items():
        own_share = create_own_secret_share(participant)
        received = []
        for sender_id, (sender, sender_broadcast) in by_id.items():
            if sender_id == ident:
                continue
            share = create_share_for(sender, ident)
            assert verify_share_validity(participant, share, sender_broadcast)
            received.append(share)
        private_key = compute_private_key(own_share, received)
        public_key = compute_own_public_share(private_key)
        verification_shares = [
            compute_participant_verification_share(participant, b) for _, b in by_id.values()
        ]
        assert public_key == compute_others_verification_share(verification_shares)
        public_keys[ident] = public_key

    assert len(set(public_keys.values())) == 3

    group_key = compute_group_public_key([walter_b, jessie_b, skylar_b])
    secret = sum(p.polynomial[0] for p in group["participants"])
    assert group_key == compute_own_public_share(secret)


def test_generate_polynomial_has_threshold_coefficients():
    polynomial = generate_polynomial(FrostState(5, 4), random.Random(7))
    assert len(polynomial) == 4
    assert all(0 <= c < GROUP_ORDER for c in polynomial)


def test_public_commitment_of_constant_term_decompresses(group):
    participant = group["participants"][0]
    commitments = compute_public_commitments(participant)
    assert len(commitments) == 2
    assert decompress(commitments[0]) == participant.polynomial[0] * BASEPOINT


def test_verify_proofs_rejects_tampered_signature(group):
    original = group["broadcasts"][0]
    w, c = original.signature
    tampered = Broadcast(original.participant_id, original.commitments, ((w + 1) % GROUP_ORDER, c))
    assert verify_proofs([tampered]) is False
    assert verify_proofs([original]) is True


def test_verify_proofs_rejects_wrong_identifier(group):
    original = group["broadcasts"][1]
    moved = Broadcast(9, original.commitments, original.signature)
    assert verify_proofs([moved]) is False


def test_verify_proofs_non_broadcast_fails(group):
    assert verify_proofs([group["broadcasts"][0], SecretShare(1, 2, 3)]) is False


def test_verify_proofs_empty_commitments_raise():
    with pytest.raises(KeygenError):
        verify_proofs([Broadcast(1, (), (1, 2))])


def test_verify_proofs_invalid_point_raises():
    with pytest.raises(KeygenError):
        verify_proofs([Broadcast(1, (_invalid_point(),), (1, 2))])


@pytest.mark.parametrize(
    ("x", "polynomial", "expected"),
    [
        (2, [1, 2, 3], 17),
        (0, [5, 7], 5),
        (3, [], 0),
        (1, [GROUP_ORDER - 1, 2], 1),
        (10, [0, 0, 1], 100),
    ],
)
def test_calculate_y(x, polynomial, expected):
    assert calculate_y(x, polynomial) == expected


def test_own_secret_share_is_share_for_self(group):
    walter = group["participants"][0]
    own = create_own_secret_share(walter)
    assert own == create_share_for(walter, walter.id)
    assert own.sender_id == own.receiver_id == 1


def test_create_share_for_addresses_receiver():
    sender = Participant(2, [4, 5])
    share = create_share_for(sender, 3)
    assert share == SecretShare(sender_id=2, receiver_id=3, secret=19)


def test_verify_share_validity_rejects_wrong_secret(group):
    walter, jessie, _ = group["participants"]
    jessie_b = group["broadcasts"][1]
    share = create_share_for(jessie, walter.id)
    bad = SecretShare(share.sender_id, share.receiver_id, (share.secret + 1) % GROUP_ORDER)
    assert verify_share_validity(walter, share, jessie_b) is True
    assert verify_share_validity(walter, bad, jessie_b) is False


def test_verify_share_validity_wrong_types(group):
    walter = group["participants"][0]
    assert verify_share_validity(walter, Response(1, 2), group["broadcasts"][1]) is False
    assert verify_share_validity(walter, SecretShare(2, 1, 3), SecretShare(2, 1, 3)) is False


def test_compute_private_key_sums_shares():
    own = SecretShare(1, 1, 5)
    assert compute_private_key(own, [SecretShare(2, 1, 7), SecretShare(3, 1, 11)]) == 23
    assert compute_private_key(SecretShare(1, 1, GROUP_ORDER - 1), [SecretShare(2, 1, 2)]) == 1


def test_compute_private_key_rejects_other_messages():
    with pytest.raises(KeygenError):
        compute_private_key(Response(1, 2), [])
    with pytest.raises(KeygenError):
        compute_private_key(SecretShare(1, 1, 2), [Response(2, 3)])


def test_compute_group_public_key_errors_and_empty():
    with pytest.raises(KeygenError):
        compute_group_public_key([SecretShare(1, 2, 3)])
    assert compute_group_public_key([]) == EdwardsPoint.identity().compress()


def test_participant_verification_share_requires_broadcast(group):
    with pytest.raises(KeygenError):
        compute_participant_verification_share(group["participants"][0], SecretShare(1, 2, 3))


def test_participant_verification_share_matches_share(group):
    walter, jessie, _ = group["participants"]
    jessie_b = group["broadcasts"][1]
    share = create_share_for(jessie, walter.id)
    expected = compute_own_public_share(share.secret)
    assert compute_participant_verification_share(walter, jessie_b) == expected


def test_others_verification_share_sums_points():
    one = compute_own_public_share(1)
    assert compute_others_verification_share([one, one]) == compute_own_public_share(2)
    assert compute_others_verification_share([]) == EdwardsPoint.identity().compress()


def test_others_verification_share_invalid_point():
    with pytest.raises(KeygenError):
        compute_others_verification_share([_invalid_point()])


def test_own_public_share_of_one_is_basepoint():
    assert compute_own_public_share(1) == bytes.fromhex("58" + "66" * 31)