"""Arithmetic on the Ed25519 group and its scalar field.

Scalars are plain Python integers reduced modulo the group order.
Points use extended twisted Edwards coordinates and compress to the
standard 32-byte encoding.
"""

from __future__ import annotations

import hashlib
import secrets
from typing import Protocol

FIELD_PRIME = 2**255 - 19
GROUP_ORDER = 2**252 + 27742317777372353535851937790883648493

_P = FIELD_PRIME
_D = (-121665 * pow(121666, _P - 2, _P)) % _P
_D2 = (2 * _D) % _P
_SQRT_M1 = pow(2, (_P - 1) // 4, _P)
_POINT_SIZE = 32
_SCALAR_SIZE = 32


class RandomSource(Protocol):
    """Anything that yields random bits, such as ``random.Random``."""

    def getrandbits(self, k: int) -> int: ...


class EdwardsPoint:
    """A point on the Ed25519 curve."""

    __slots__ = ("_x", "_y", "_z", "_t")

    def __init__(self, x: int, y: int, z: int, t: int) -> None:
        self._x = x % _P
        self._y = y % _P
        self._z = z % _P
        self._t = t % _P

    @classmethod
    def identity(cls) -> EdwardsPoint:
        """Return the neutral element of the group."""
        return cls(0, 1, 1, 0)

    def __add__(self, other: object) -> EdwardsPoint:
        if not isinstance(other, EdwardsPoint):
            return NotImplemented
        a = (self._y - self._x) * (other._y - other._x) % _P
        b = (self._y + self._x) * (other._y + other._x) % _P
        c = self._t * _D2 * other._t % _P
        d = self._z * 2 * other._z % _P
        e, f, g, h = b - a, d - c, d + c, b + a
        return EdwardsPoint(e * f, g * h, f * g, e * h)

    def __neg__(self) -> EdwardsPoint:
        return EdwardsPoint(-self._x, self._y, self._z, -self._t)

    def __sub__(self, other: object) -> EdwardsPoint:
        if not isinstance(other, EdwardsPoint):
            return NotImplemented
        return self + (-other)

    def __mul__(self, scalar: object) -> EdwardsPoint:
        if not isinstance(scalar, int) or isinstance(scalar, bool):
            return NotImplemented
        k = scalar % GROUP_ORDER
        result = EdwardsPoint.identity()
        addend = self
        while k:
            if k & 1:
                result = result + addend
            addend = addend + addend
            k >>= 1
        return result

    __rmul__ = __mul__

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EdwardsPoint):
            return NotImplemented
        return (
            self._x * other._z - other._x * self._z
        ) % _P == 0 and (self._y * other._z - other._y * self._z) % _P == 0

    def __hash__(self) -> int:
        return hash(self.compress())

    def __repr__(self) -> str:
        return f"EdwardsPoint({self.compress().hex()})"

    def compress(self) -> bytes:
        """Return the 32-byte compressed encoding of the point."""
        z_inv = pow(self._z, _P - 2, _P)
        x = self._x * z_inv % _P
        y = self._y * z_inv % _P
        return (y | ((x & 1) << 255)).to_bytes(_POINT_SIZE, "little")

    @classmethod
    def decompress(cls, data: bytes) -> EdwardsPoint:
        """Decode a compressed point, raising ``ValueError`` if it is invalid."""
        raw = bytes(data)
        if len(raw) != _POINT_SIZE:
            raise ValueError("A compressed point must be 32 bytes long.")
        encoded = int.from_bytes(raw, "little")
        sign = encoded >> 255
        y = (encoded & ((1 << 255) - 1)) % _P
        y2 = y * y % _P
        u = (y2 - 1) % _P
        v = (_D * y2 + 1) % _P
        v3 = v * v % _P * v % _P
        x = u * v3 % _P * pow(u * v3 % _P * v3 % _P * v % _P, (_P - 5) // 8, _P) % _P
        vx2 = v * x % _P * x % _P
        if vx2 == u:
            pass
        elif vx2 == (-u) % _P:
            x = x * _SQRT_M1 % _P
        else:
            raise ValueError("Couldn't decompress the point.")
        if (x & 1) != sign:
            x = (-x) % _P
        return cls(x, y, 1, x * y)


BASEPOINT = EdwardsPoint.decompress(bytes.fromhex("58" + "66" * 31))


def random_scalar(rng: RandomSource | None = None) -> int:
    """Draw a uniformly distributed scalar."""
    source = rng if rng is not None else secrets.SystemRandom()
    return source.getrandbits(512) % GROUP_ORDER


def scalar_to_bytes(value: int) -> bytes:
    """Encode a scalar as 32 little-endian bytes."""
    return (value % GROUP_ORDER).to_bytes(_SCALAR_SIZE, "little")


def scalar_from_bytes(data: bytes) -> int:
    """Decode a canonical 32-byte scalar, raising ``ValueError`` otherwise."""
    raw = bytes(data)
    if len(raw) != _SCALAR_SIZE:
        raise ValueError("A scalar must be 32 bytes long.")
    value = int.from_bytes(raw, "little")
    if value >= GROUP_ORDER:
        raise ValueError("Scalar was not canonically encoded.")
    return value


def invert_scalar(value: int) -> int:
    """Return the multiplicative inverse of a scalar (zero maps to zero)."""
    return pow(value % GROUP_ORDER, GROUP_ORDER - 2, GROUP_ORDER)


def hash_to_array(*parts: bytes) -> bytes:
    """Hash the concatenation of ``parts`` into a 64-byte digest."""
    return hashlib.sha512(b"".join(bytes(part) for part in parts)).digest()


def hash_to_scalar(*parts: bytes) -> int:
    """Hash the concatenation of ``parts`` into a scalar."""
    return int.from_bytes(hash_to_array(*parts), "little") % GROUP_ORDER


def decompress(data: bytes) -> EdwardsPoint:
    """Decode a compressed point, raising ``ValueError`` if it is invalid."""
    return EdwardsPoint.decompress(data)