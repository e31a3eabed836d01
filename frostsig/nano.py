"""Nano blockchain support: account addresses, blocks and node RPC calls."""

from __future__ import annotations

import hashlib
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import httpx

_logger = logging.getLogger(__name__)

_ACCOUNT_LOOKUP = "13456789abcdefghijkmnopqrstuwxyz"
_ACCOUNT_PREFIX = "nano_"
_ACCOUNT_SYMBOLS = 60
_CHECKSUM_SIZE = 5
_PLACEHOLDER = "to fill"
_BLOCK_TYPE = "state"


def _env(name: str) -> str:
    try:
        return os.environ[name]
    except KeyError:
        raise KeyError(f"Environment variable {name} is not set.") from None


def _require_strings(payload: Any, names: tuple[str, ...], what: str) -> dict[str, str]:
    if not isinstance(payload, dict):
        raise ValueError(f"Expected a JSON object for {what}.")
    values: dict[str, str] = {}
    for name in names:
        if name not in payload:
            raise ValueError(f"Missing field {name!r} in {what}.")
        value = payload[name]
        if not isinstance(value, str):
            raise ValueError(f"Field {name!r} in {what} must be a string.")
        values[name] = value
    return values


class Subtype(Enum):
    """Kind of transaction a block performs."""

    SEND = "SEND"
    RECEIVE = "RECEIVE"
    OPEN = "OPEN"

    def as_str(self) -> str:
        """Return the subtype name used by the node RPC."""
        return self.name.lower()


_UNSIGNED_FIELDS = (
    "type",
    "account",
    "previous",
    "representative",
    "balance",
    "link",
    "link_as_account",
)


@dataclass
class UnsignedBlock:
    """A state block that still has to be signed by the group."""

    account: str
    previous: str
    representative: str
    balance: str
    link: str
    link_as_account: str
    block_type: str = field(default=_BLOCK_TYPE)

    @classmethod
    def empty(cls) -> UnsignedBlock:
        """Return a block whose fields are all placeholders to be filled in."""
        return cls(*([_PLACEHOLDER] * 6))

    def to_dict(self) -> dict[str, str]:
        """Return the block as a JSON-ready mapping."""
        return {
            "type": self.block_type,
            "account": self.account,
            "previous": self.previous,
            "representative": self.representative,
            "balance": self.balance,
            "link": self.link,
            "link_as_account": self.link_as_account,
        }

    @classmethod
    def from_dict(cls, data: Any) -> UnsignedBlock:
        """Build a block from a mapping, raising ``ValueError`` if a field is missing."""
        values = _require_strings(data, _UNSIGNED_FIELDS, "an unsigned block")
        return cls(
            account=values["account"],
            previous=values["previous"],
            representative=values["representative"],
            balance=values["balance"],
            link=values["link"],
            link_as_account=values["link_as_account"],
            block_type=values["type"],
        )

    def to_signed_block(self, signature: str, work: str) -> SignedBlock:
        """Attach a signature and proof of work to the block."""
        return SignedBlock(
            previous=self.previous,
            account=self.account,
            representative=self.representative,
            balance=self.balance,
            link=self.link,
            link_as_account=self.link_as_account,
            signature=signature,
            work=work,
        )

    @classmethod
    async def create_open(cls, state: RPCState, account_address: str) -> UnsignedBlock:
        """Build the block that opens an account from its first receivable block."""
        receivable = await Receivable.get_from_rpc(state, account_address, 1)
        if not receivable.blocks:
            raise ValueError(f"Account {account_address} has no receivable blocks.")
        first = receivable.blocks[0]
        block = await BlockInfo.get_from_rpc(state, first)
        return cls(
            account=account_address,
            previous="0",
            representative=_env("REPRESENTATIVE"),
            balance=block.amount,
            link=first,
            link_as_account=block.block_account,
        )


@dataclass
class SignedBlock:
    """A signed state block ready to be published."""

    previous: str
    account: str
    representative: str
    balance: str
    link: str
    link_as_account: str
    signature: str
    work: str
    block_type: str = field(default=_BLOCK_TYPE)

    def to_dict(self) -> dict[str, str]:
        """Return the block as a JSON-ready mapping."""
        return {
            "type": self.block_type,
            "previous": self.previous,
            "account": self.account,
            "representative": self.representative,
            "balance": self.balance,
            "link": self.link,
            "link_as_account": self.link_as_account,
            "signature": self.signature,
            "work": self.work,
        }


@dataclass
class RPCState:
    """Address of the node RPC and the HTTP client used to reach it."""

    url: str
    client: httpx.AsyncClient | None = None

    async def request(self, data: dict[str, Any]) -> Any:
        """POST ``data`` as JSON to the node and return the decoded JSON reply."""
        if self.client is not None:
            response = await self.client.post(self.url, json=data)
            return response.json()
        async with httpx.AsyncClient() as client:
            response = await client.post(self.url, json=data)
            return response.json()


@dataclass(frozen=True)
class AccountInfo:
    """Result of the ``account_info`` action."""

    frontier: str
    open_block: str
    representative_block: str
    balance: str

    @classmethod
    async def get_from_rpc(cls, state: RPCState, account_address: str) -> AccountInfo:
        """Query the node for an account's information."""
        reply = await state.request({"action": "account_info", "account": account_address})
        return cls(
            **_require_strings(
                reply,
                ("frontier", "open_block", "representative_block", "balance"),
                "account_info",
            )
        )


@dataclass(frozen=True)
class AccountBalance:
    """Result of the ``account_balance`` action."""

    balance: str
    pending: str
    receivable: str
    balance_nano: str
    pending_nano: str
    receivable_nano: str

    @classmethod
    async def get_from_rpc(cls, state: RPCState, account_address: str) -> AccountBalance:
        """Query the node for an account's balance."""
        reply = await state.request({"action": "account_balance", "account": account_address})
        return cls(
            **_require_strings(
                reply,
                (
                    "balance",
                    "pending",
                    "receivable",
                    "balance_nano",
                    "pending_nano",
                    "receivable_nano",
                ),
                "account_balance",
            )
        )


@dataclass(frozen=True)
class WorkGenerate:
    """Result of the ``work_generate`` action."""

    work: str
    frontier: str

    @classmethod
    async def get_from_rpc(cls, state: RPCState, hash_: str, key: str) -> WorkGenerate:
        """Ask the node to generate proof of work for ``hash_``."""
        reply = await state.request({"action": "work_generate", "hash": hash_, "key": key})
        return cls(**_require_strings(reply, ("work", "frontier"), "work_generate"))


@dataclass(frozen=True)
class Receivable:
    """Result of the ``receivable`` action."""

    blocks: tuple[str, ...]

    @classmethod
    async def get_from_rpc(cls, state: RPCState, account_address: str, count: int) -> Receivable:
        """Query the node for up to ``count`` receivable block hashes."""
        reply = await state.request(
            {"action": "receivable", "account": account_address, "count": str(count)}
        )
        if not isinstance(reply, dict) or "blocks" not in reply:
            raise ValueError("Missing field 'blocks' in receivable.")
        blocks = reply["blocks"]
        if not isinstance(blocks, list) or not all(isinstance(b, str) for b in blocks):
            raise ValueError("Field 'blocks' in receivable must be a list of strings.")
        return cls(tuple(blocks))


@dataclass(frozen=True)
class BlockInfo:
    """Result of the ``block_info`` action."""

    block_account: str
    amount: str

    @classmethod
    async def get_from_rpc(cls, state: RPCState, hash_: str) -> BlockInfo:
        """Query the node for a block's account and amount."""
        reply = await state.request({"action": "block_info", "hash": hash_})
        return cls(**_require_strings(reply, ("block_account", "amount"), "block_info"))


@dataclass(frozen=True)
class Process:
    """Result of the ``process`` action."""

    hash: str

    @classmethod
    async def sign_in_rpc(
        cls, state: RPCState, subtype: Subtype, signed_block: SignedBlock
    ) -> Process:
        """Publish a signed block and return the hash the node assigned to it."""
        data = {
            "action": "process",
            "subtype": subtype.as_str(),
            "json_block": "true",
            "block": signed_block.to_dict(),
        }
        _logger.debug("process request: %s", data)
        reply = await state.request(data)
        return cls(**_require_strings(reply, ("hash",), "process"))


async def create_signed_block(
    state: RPCState,
    unsigned_block: UnsignedBlock,
    signature: str,
    aggregate_public_key: str,
) -> SignedBlock:
    """Generate work for a block and attach the signature to it."""
    root = aggregate_public_key if unsigned_block.previous == "0" else unsigned_block.previous
    work = await WorkGenerate.get_from_rpc(state, root, _env("KEY"))
    return unsigned_block.to_signed_block(signature, work.work)


def _account_checksum(public_key: bytes) -> bytes:
    return hashlib.blake2b(public_key, digest_size=_CHECKSUM_SIZE).digest()


def public_key_to_nano_account(public_key: bytes) -> str:
    """Encode a 32-byte public key as a Nano account address."""
    key = bytes(public_key)
    if len(key) != 32:
        raise ValueError("A public key must be 32 bytes long.")
    number = (int.from_bytes(key, "big") << 40) | int.from_bytes(
        _account_checksum(key), "little"
    )
    symbols = []
    for _ in range(_ACCOUNT_SYMBOLS):
        symbols.append(_ACCOUNT_LOOKUP[number & 0x1F])
        number >>= 5
    return _ACCOUNT_PREFIX + "".join(reversed(symbols))