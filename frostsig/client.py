"""Participant clients for the FROST keygen and signing operations.

Both clients talk to the relay server over TCP with one JSON message per
line. The keygen client stores its key material in a sign input file. The
sign client reads that file back when it takes part in a signature.
"""

from __future__ import annotations

import asyncio
import json
import os
from collections.abc import Sequence
from typing import TypeVar

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey
from dotenv import load_dotenv

from .group import scalar_to_bytes
from .keygen import (
    Participant,
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
from .message import (
    Broadcast,
    FrostState,
    IdMessage,
    Message,
    PublicCommitment,
    Response,
    SecretShare,
    StateMessage,
    from_json_string,
    to_json_string,
)
from .nano import (
    Process,
    RPCState,
    Subtype,
    UnsignedBlock,
    create_signed_block,
    public_key_to_nano_account,
)
from .preprocess import generate_nonces_and_commitments
from .sign import (
    compute_aggregate_response,
    compute_group_commitment_and_challenge,
    compute_own_response,
    computed_response_to_signature,
    lagrange_coefficient,
    verify_participant,
)
from .signinput import FrostClient, SignInput

BLUE = "\x1b[34m"
YELLOW = "\x1b[33m"
RESET = "\x1b[0m"

_AGGREGATOR_ID = 1
_LINE_LIMIT = 1 << 20
_PARSE_ERROR = "Couldn't parse the message."

_M = TypeVar("_M")


def log(message: str) -> None:
    """Print a client status line to the terminal."""
    print(f"{BLUE}Frost Client:{RESET} {message}")


async def receive_message(reader: asyncio.StreamReader) -> Message:
    """Read one line from the server and decode it as a message."""
    line = await reader.readline()
    if not line:
        raise ConnectionError("Couldn't receive the message.")
    return from_json_string(line.decode("utf-8").rstrip("\r\n"))


async def _send(writer: asyncio.StreamWriter, message: Message) -> None:
    writer.write((to_json_string(message) + "\n").encode("utf-8"))
    await writer.drain()


async def _receive_many(
    reader: asyncio.StreamReader, kind: type[_M], count: int
) -> list[_M]:
    messages: list[_M] = []
    for _ in range(count):
        message = await receive_message(reader)
        if not isinstance(message, kind):
            raise ValueError(_PARSE_ERROR)
        messages.append(message)
    return messages


async def _receive_id(reader: asyncio.StreamReader) -> int:
    message = await receive_message(reader)
    if not isinstance(message, IdMessage):
        raise ValueError(_PARSE_ERROR)
    return message.id


def _block_message(block: UnsignedBlock) -> str:
    return json.dumps(block.to_dict(), separators=(",", ":"), ensure_ascii=False)


def _env(name: str) -> str:
    value = os.environ.get(name)
    if value is None:
        raise KeyError(f"Environment variable {name} is not set.")
    return value


async def run_keygen_client(ip: str, port: int, path: str) -> None:
    """Take part in a keygen operation and store the result at ``path``."""
    reader, writer = await asyncio.open_connection(ip, port, limit=_LINE_LIMIT)
    try:
        log("Connected to the server successfully.")
        sign_input = await _keygen(reader, writer, path)
    finally:
        writer.close()
    sign_input.to_file(path)


async def _keygen(
    reader: asyncio.StreamReader, writer: asyncio.StreamWriter, path: str
) -> SignInput:
    own_id = await _receive_id(reader)
    state_message = await receive_message(reader)
    if not isinstance(state_message, StateMessage):
        raise ValueError("Couldn't parse message.")
    client = FrostClient(
        FrostState(state_message.participants, state_message.threshold), own_id
    )
    others = client.state.participants - 1

    # Round 1: commit to a secret polynomial and prove knowledge of its constant term.
    participant = Participant(client.own_id, generate_polynomial(client.state, None))
    own_broadcast = Broadcast(
        participant_id=participant.id,
        commitments=tuple(compute_public_commitments(participant)),
        signature=compute_proof_of_knowledge(None, participant),
    )
    await _send(writer, own_broadcast)
    broadcasts = await _receive_many(reader, Broadcast, others)
    if not verify_proofs(broadcasts):
        raise ValueError("Couldn't verify the other participants' proofs.")

    # Round 2: exchange secret shares and derive the long-lived keys.
    own_share = create_own_secret_share(participant)
    for receiver in range(1, client.state.participants + 1):
        if receiver != participant.id:
            await _send(writer, create_share_for(participant, receiver))
    shares = await _receive_many(reader, SecretShare, others)
    for share in shares:
        sender_broadcast = next(
            (b for b in broadcasts if b.participant_id == share.sender_id), None
        )
        if sender_broadcast is None:
            raise ValueError(f"No broadcast from participant {share.sender_id}.")
        if not verify_share_validity(participant, share, sender_broadcast):
            raise ValueError(f"Invalid secret share from participant {share.sender_id}.")

    private_key = compute_private_key(own_share, shares)
    own_public_share = compute_own_public_share(private_key)
    all_broadcasts: list[Message] = [*broadcasts, own_broadcast]

    expected_share = compute_others_verification_share(
        compute_participant_verification_share(participant, b) for b in all_broadcasts
    )
    if own_public_share != expected_share:
        raise ValueError("Couldn't confirm others' shares.")

    group_key = compute_group_public_key(all_broadcasts)
    log(
        f"This is the group's nano account "
        f"{YELLOW}{public_key_to_nano_account(group_key)}{RESET}."
    )
    log(f"The keygen process information was stored in {YELLOW}{path}{RESET}.")

    return SignInput(
        state=client.state,
        public_aggregated_key=group_key,
        own_public_share=own_public_share,
        own_private_share=private_key,
        participants_proofs=all_broadcasts,
        subtype=Subtype.OPEN,
        message=UnsignedBlock.empty(),
    )


async def run_sign_client(ip: str, port: int, path: str) -> None:
    """Take part in a signing operation with the key material stored at ``path``."""
    sign_input = SignInput.from_file(path)
    sign_input.verify()
    reader, writer = await asyncio.open_connection(ip, port, limit=_LINE_LIMIT)
    try:
        await _sign(sign_input, reader, writer)
    finally:
        writer.close()


async def _sign(
    sign_input: SignInput, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
) -> None:
    client = FrostClient(sign_input.state, await _receive_id(reader))

    nonces, (di, ei) = generate_nonces_and_commitments()
    own_commitment = PublicCommitment(
        participant_id=client.own_id,
        di=di,
        ei=ei,
        public_share=sign_input.own_public_share,
    )
    await _send(writer, own_commitment)

    seen = {(sign_input.own_public_share, client.own_id)}
    commitments = [own_commitment]
    for _ in range(1, client.state.threshold):
        received = await receive_message(reader)
        if not isinstance(received, PublicCommitment):
            raise ValueError(_PARSE_ERROR)
        key = (received.public_share, received.participant_id)
        if key in seen:
            raise ValueError(
                "Multiple instances of the same participant tried to sign the operation."
            )
        seen.add(key)
        commitments.append(received)

    ids = sorted(participant_id for _, participant_id in seen)
    commitments.sort(key=lambda c: c.participant_id)

    message = _block_message(sign_input.message)
    group_commitment, challenge = compute_group_commitment_and_challenge(
        commitments, message, sign_input.public_aggregated_key, b""
    )
    own_response = compute_own_response(
        client.own_id,
        own_commitment,
        commitments,
        sign_input.own_private_share,
        nonces,
        lagrange_coefficient(ids, client.own_id),
        challenge,
        message,
        sign_input.own_public_share,
        b"",
    )

    if client.own_id != _AGGREGATOR_ID:
        await _send(writer, own_response)
        return

    await _aggregate(
        sign_input,
        reader,
        client,
        own_response,
        commitments,
        ids,
        message,
        group_commitment,
        challenge,
    )


async def _aggregate(
    sign_input: SignInput,
    reader: asyncio.StreamReader,
    client: FrostClient,
    own_response: Response,
    commitments: Sequence[PublicCommitment],
    ids: Sequence[int],
    message: str,
    group_commitment: bytes,
    challenge: int,
) -> None:
    responses = [
        own_response,
        *await _receive_many(reader, Response, client.state.threshold - 1),
    ]
    for response in responses:
        commitment = next(
            (c for c in commitments if c.participant_id == response.sender_id), None
        )
        if commitment is None:
            raise ValueError("Couldn't get participant's id.")
        verify_participant(
            commitment,
            commitments,
            message,
            response,
            challenge,
            commitment.public_share,
            b"",
            ids,
        )

    aggregate_response = compute_aggregate_response(responses)
    signature = computed_response_to_signature(aggregate_response, group_commitment)
    Ed25519PublicKey.from_public_bytes(sign_input.public_aggregated_key).verify(
        signature, message.encode("utf-8")
    )

    load_dotenv()
    state = RPCState(_env("URL"))
    signed_block = await create_signed_block(
        state,
        sign_input.message,
        signature.hex().upper(),
        sign_input.public_aggregated_key.hex(),
    )
    process = await Process.sign_in_rpc(state, sign_input.subtype, signed_block)
    log(f"The block was successfully created with the hash: {YELLOW}{process.hash}{RESET}")
    log(
        f"The group {YELLOW}{list(sign_input.public_aggregated_key)}{RESET} "
        f"computed this response {YELLOW}{list(scalar_to_bytes(aggregate_response))}{RESET} "
        f'with this message {YELLOW}"{message}"{RESET}.'
    )