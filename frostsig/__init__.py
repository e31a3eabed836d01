"""FROST threshold signatures over Ed25519: keygen, signing, a relay server and clients, and Nano block helpers."""

__version__ = "0.0.1"