import json
import random

import pytest

from frostsig.group import BASEPOINT, GROUP_ORDER, random_scalar
from frostsig.message import (
    Broadcast,
    FrostState,
    IdMessage,
    MessageError,
    PublicCommitment,
    Response,
    SecretShare,
    StateMessage,
    from_json_string,
    to_json_string,
)


@pytest.fixture
def rng():
    return random.Random(99)


def _point(rng):
    return (random_scalar(rng) * BASEPOINT).compress()


@pytest.fixture
def samples(rng):
    return [
        Broadcast(1, [_point(rng), _point(rng)], (random_scalar(rng), random_scalar(rng))),
        SecretShare(1, 2, random_scalar(rng)),
        PublicCommitment(3, _point(rng), _point(rng), _point(rng)),
        Response(2, random_scalar(rng)),
        StateMessage(3, 2),
        IdMessage(7),
    ]


def test_round_trip_every_variant(samples):
    for message in samples:
        assert from_json_string(to_json_string(message)) == message


def test_id_wire_format():
    assert to_json_string(IdMessage(3)) == '{"Id":3}'


def test_state_wire_format():
    assert to_json_string(StateMessage(3, 2)) == '{"FrostState":{"participants":3,"threshold":2}}'


def test_scalars_are_little_endian_byte_arrays():
    encoded = json.loads(to_json_string(Response(1, 5)))
    assert encoded["Response"]["sender_id"] == 1
    assert encoded["Response"]["value"] == [5] + [0] * 31


def test_broadcast_field_layout(samples):
    broadcast = samples[0]
    payload = json.loads(to_json_string(broadcast))["Broadcast"]
    assert list(payload) == ["participant_id", "commitments", "signature"]
    assert bytes(payload["commitments"][0]) == broadcast.commitments[0]
    assert len(payload["signature"]) == 2


def test_messages_are_hashable_and_normalised(rng):
    point = _point(rng)
    first = Broadcast(1, [point], (1, 2))
    second = Broadcast(1, (point,), [1, 2])
    assert first == second
    assert len({first, second}) == 1


def test_frost_state_to_message():
    assert FrostState(3, 2).to_message() == StateMessage(3, 2)


def test_invalid_json_raises():
    with pytest.raises(MessageError):
        from_json_string("not json")


def test_unknown_variant_raises():
    with pytest.raises(MessageError):
        from_json_string('{"Hello":1}')


def test_missing_field_raises():
    with pytest.raises(MessageError):
        from_json_string('{"FrostState":{"participants":3}}')


def test_negative_id_raises():
    with pytest.raises(MessageError):
        from_json_string('{"Id":-1}')


def test_non_canonical_scalar_raises():
    raw = list(GROUP_ORDER.to_bytes(32, "little"))
    text = json.dumps({"Response": {"sender_id": 1, "value": raw}})
    with pytest.raises(MessageError):
        from_json_string(text)


def test_short_point_raises():
    text = json.dumps(
        {"PublicCommitment": {"participant_id": 1, "di": [0] * 31, "ei": [0] * 32, "public_share": [0] * 32}}
    )
    with pytest.raises(MessageError):
        from_json_string(text)


def test_encoding_non_message_raises():
    with pytest.raises(MessageError):
        to_json_string({"Id": 1})