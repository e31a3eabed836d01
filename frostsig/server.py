"""Relay server that lets the participants of a FROST operation talk to each other.

Each participant connects over TCP and exchanges newline-delimited JSON
messages. The server assigns identifiers in order of arrival. Once everyone
has joined, it forwards every message to the participants it is meant for.
"""

from __future__ import annotations

import asyncio
import sys
from dataclasses import dataclass
from typing import Any

from .message import (
    Broadcast,
    FrostState,
    IdMessage,
    Message,
    MessageError,
    PublicCommitment,
    Response,
    SecretShare,
    from_json_string,
    to_json_string,
)

BLUE = "\x1b[34m"
YELLOW = "\x1b[33m"
RESET = "\x1b[0m"

_AGGREGATOR_ID = 1
_LINGER_SECONDS = 1.0
_LINE_LIMIT = 1 << 20


def log(message: str) -> None:
    """Print a server status line to the terminal."""
    print(f"{BLUE}Frost Server:{RESET} {message}")


@dataclass
class ServerParticipant:
    """A connected participant as the server sees it."""

    id: int
    queue: asyncio.Queue[Message]
    addr: Any


class FrostServer:
    """Routing table of the participants connected to one FROST operation."""

    def __init__(self, participants: int, threshold: int) -> None:
        self.state = FrostState(participants, threshold)
        self.by_addr: dict[Any, asyncio.Queue[Message]] = {}
        self.by_id: dict[int, asyncio.Queue[Message]] = {}

    def broadcast(self, sender: Any, message: Message) -> None:
        """Queue ``message`` for every participant except the one at ``sender``."""
        for addr, queue in self.by_addr.items():
            if addr != sender:
                queue.put_nowait(message)

    def send_to(self, receiver: int, message: Message) -> None:
        """Queue ``message`` for the participant with id ``receiver``, if connected."""
        queue = self.by_id.get(receiver)
        if queue is not None:
            queue.put_nowait(message)

    def send_message(self, participant: ServerParticipant, message: Message) -> None:
        """Route a message from ``participant`` according to its kind."""
        match message:
            case Broadcast() | PublicCommitment():
                self.broadcast(participant.addr, message)
            case SecretShare(receiver_id=receiver_id):
                self.send_to(receiver_id, message)
            case Response():
                # The signature aggregator is always the first to join.
                self.send_to(_AGGREGATOR_ID, message)
            case _:
                raise ValueError("Tried to send an invalid message.")


async def _relay(
    participant: ServerParticipant,
    server: FrostServer,
    reader: asyncio.StreamReader,
    writer: asyncio.StreamWriter,
) -> None:
    outgoing = asyncio.ensure_future(participant.queue.get())
    incoming = asyncio.ensure_future(reader.readline())
    try:
        while True:
            done, _ = await asyncio.wait(
                {outgoing, incoming}, return_when=asyncio.FIRST_COMPLETED
            )
            if outgoing in done:
                writer.write((to_json_string(outgoing.result()) + "\n").encode("utf-8"))
                await writer.drain()
                outgoing = asyncio.ensure_future(participant.queue.get())
            if incoming in done:
                line = incoming.result()
                if not line:
                    return
                text = line.decode("utf-8").rstrip("\r\n")
                try:
                    message = from_json_string(text)
                except MessageError as error:
                    raise MessageError("Tried to send invalid message.") from error
                server.send_message(participant, message)
                incoming = asyncio.ensure_future(reader.readline())
    finally:
        outgoing.cancel()
        incoming.cancel()


async def handle(
    participant_id: int,
    barrier: asyncio.Barrier,
    server: FrostServer,
    reader: asyncio.StreamReader,
    writer: asyncio.StreamWriter,
) -> None:
    """Register a connection, wait for everyone to join, then relay its messages."""
    try:
        addr = writer.get_extra_info("peername")
        queue: asyncio.Queue[Message] = asyncio.Queue()
        server.by_id[participant_id] = queue
        server.by_addr[addr] = queue
        participant = ServerParticipant(participant_id, queue, addr)
        queue.put_nowait(IdMessage(participant_id))
        await barrier.wait()
        await _relay(participant, server, reader, writer)
    finally:
        writer.close()


class _Session:
    """Accepts up to ``limit`` connections and runs a handler for each."""

    def __init__(self, server: FrostServer, barrier: asyncio.Barrier, limit: int) -> None:
        self.server = server
        self.barrier = barrier
        self.limit = limit
        self.count = 0
        self.tasks: set[asyncio.Task[Any]] = set()
        self.all_joined = asyncio.Event()

    async def accept(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        if self.count >= self.limit:
            writer.close()
            return
        self.count += 1
        participant_id = self.count
        if self.count == self.limit:
            self.all_joined.set()
        task = asyncio.current_task()
        if task is not None:
            self.tasks.add(task)
        log("Accepted a connection.")
        try:
            await handle(participant_id, self.barrier, self.server, reader, writer)
        except Exception as error:  # noqa: BLE001 - reported like the other handlers
            print(error, file=sys.stderr)
        finally:
            if task is not None:
                self.tasks.discard(task)

    async def shutdown(self, listener: asyncio.AbstractServer) -> None:
        listener.close()
        pending = list(self.tasks)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        await listener.wait_closed()


async def run_keygen_server(ip: str, port: int, participants: int, threshold: int) -> None:
    """Serve one keygen operation for ``participants`` clients."""
    address = f"{ip}:{port}"
    server = FrostServer(participants, threshold)
    barrier = asyncio.Barrier(participants + 1)
    session = _Session(server, barrier, participants)
    listener = await asyncio.start_server(session.accept, ip, port, limit=_LINE_LIMIT)
    log(f"Keygen initialized on {YELLOW}{address}{RESET}.")
    try:
        await barrier.wait()
        for queue in server.by_addr.values():
            queue.put_nowait(server.state.to_message())
        await asyncio.sleep(_LINGER_SECONDS)
        log("Successfully generated the key.")
    finally:
        await session.shutdown(listener)


async def run_sign_server(ip: str, port: int, participants: int, threshold: int) -> None:
    """Serve one signing operation for ``threshold`` clients."""
    address = f"{ip}:{port}"
    server = FrostServer(participants, threshold)
    barrier = asyncio.Barrier(threshold)
    session = _Session(server, barrier, threshold)
    listener = await asyncio.start_server(session.accept, ip, port, limit=_LINE_LIMIT)
    log(f"Sign initialized on {YELLOW}{address}{RESET}.")
    try:
        await session.all_joined.wait()
        await asyncio.sleep(_LINGER_SECONDS)
        log("Shutting down server.")
    finally:
        await session.shutdown(listener)