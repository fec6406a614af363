# Copyright © The solana-tokenmeta Authors
# SPDX-License-Identifier: Apache-2.0

"""
Public keys and program-derived addresses for Solana accounts.

Every account on Solana is identified by a 32-byte public key, written in text
as base58. Programs additionally own program-derived addresses (PDAs): keys
computed from a list of seeds and the program id that are guaranteed not to lie
on the ed25519 curve, so no private key can ever sign for them.

Examples:
    Parsing and formatting::

        key = PublicKey.from_str("metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s")
        str(key)    # "metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s"
        bytes(key)  # 32 raw bytes

    Deriving a program address::

        address, bump = PublicKey.find_program_address(
            [b"metadata", bytes(program_id), bytes(mint)], program_id
        )
"""

from __future__ import annotations

import hashlib
import typing
import unittest
from dataclasses import dataclass

import base58
from solders.pubkey import Pubkey

from .borsh import Deserializer, Serializer

MAX_SEEDS = 16
MAX_SEED_LENGTH = 32
PDA_MARKER = b"ProgramDerivedAddress"


class ParsePublicKeyError(Exception):
    """Raised when a string or byte sequence is not a valid public key."""


class InvalidSeedsError(Exception):
    """Raised when seeds cannot produce a program-derived address."""


def check_seeds(seeds: typing.Sequence[bytes], max_seeds: int = MAX_SEEDS):
    if len(seeds) > max_seeds:
        raise InvalidSeedsError(f"At most {max_seeds} seeds are allowed")
    for seed in seeds:
        if len(seed) > MAX_SEED_LENGTH:
            raise InvalidSeedsError(
                f"Seed of length {len(seed)} exceeds {MAX_SEED_LENGTH} bytes"
            )


class PublicKey:
    """A 32-byte Solana account identifier.

    Curve checks and program address searches are done by ``solders``; this
    class adds Borsh encoding and the error types used across the package.

    Attributes:
        key: The raw 32 bytes.
        LENGTH: Required byte length of every key.
        ZERO: The all-zero key, used to mark an account slot as not supplied.
    """

    key: bytes
    LENGTH: int = 32
    ZERO: typing.ClassVar[PublicKey]

    def __init__(self, key: bytes):
        if not isinstance(key, (bytes, bytearray)):
            raise ParsePublicKeyError(
                f"Expected bytes, got {type(key).__name__}"
            )
        if len(key) != PublicKey.LENGTH:
            raise ParsePublicKeyError(
                f"Expected public key of length 32, got {len(key)}"
            )
        self.key = bytes(key)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PublicKey):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __bytes__(self) -> bytes:
        return self.key

    def __str__(self):
        return base58.b58encode(self.key).decode()

    def __repr__(self):
        return f"PublicKey({self})"

    def is_zero(self) -> bool:
        return self.key == bytes(PublicKey.LENGTH)

    def is_on_curve(self) -> bool:
        return self.to_solders().is_on_curve()

    def to_solders(self) -> Pubkey:
        return Pubkey(self.key)

    @staticmethod
    def from_solders(key: Pubkey) -> PublicKey:
        return PublicKey(bytes(key))

    @staticmethod
    def from_str(key: str) -> PublicKey:
        """Parse a base58 encoded public key.

        Raises:
            ParsePublicKeyError: If the string is not base58 or does not decode
                to exactly 32 bytes.
        """
        try:
            raw = base58.b58decode(key)
        except ValueError as e:
            raise ParsePublicKeyError(f"Invalid base58 public key {key!r}: {e}") from e
        return PublicKey(raw)

    @staticmethod
    def create_program_address(
        seeds: typing.Sequence[bytes], program_id: PublicKey
    ) -> PublicKey:
        """Compute the program address for an exact list of seeds.

        The address is ``sha256(seed_0 || ... || seed_n || program_id ||
        "ProgramDerivedAddress")``. ``Pubkey.create_program_address`` panics
        rather than raising when the hash lands on the curve, so only the
        curve check goes through ``solders``.

        Raises:
            InvalidSeedsError: If there are more than 16 seeds, a seed is longer
                than 32 bytes, or the resulting address lies on the curve.
        """
        check_seeds(seeds)
        hasher = hashlib.sha256()
        for seed in seeds:
            hasher.update(seed)
        hasher.update(program_id.key)
        hasher.update(PDA_MARKER)
        address = PublicKey(hasher.digest())

        if address.is_on_curve():
            raise InvalidSeedsError("Derived address lies on the ed25519 curve")
        return address

    @staticmethod
    def find_program_address(
        seeds: typing.Sequence[bytes], program_id: PublicKey
    ) -> typing.Tuple[PublicKey, int]:
        """Find the canonical program address and its bump seed.

        Bumps are tried from 255 down to 0; the first one that yields an
        off-curve address wins.

        Returns:
            The derived address and the bump that was appended to the seeds.

        Raises:
            InvalidSeedsError: If the seeds leave no room for the bump or a
                seed is longer than 32 bytes.
        """
        # One slot is reserved for the bump.
        check_seeds(seeds, MAX_SEEDS - 1)
        address, bump = Pubkey.find_program_address(
            [bytes(seed) for seed in seeds], program_id.to_solders()
        )
        return PublicKey.from_solders(address), bump

    @staticmethod
    def deserialize(deserializer: Deserializer) -> PublicKey:
        return PublicKey(deserializer.fixed_bytes(PublicKey.LENGTH))

    def serialize(self, serializer: Serializer):
        serializer.fixed_bytes(self.key)


PublicKey.ZERO = PublicKey(bytes(PublicKey.LENGTH))


"""
Tests
"""


@dataclass(init=True, frozen=True)
class KeyVector:
    base58: str
    bytes: bytes


KEY_ZERO = KeyVector(
    base58="11111111111111111111111111111111",
    bytes=bytes(32),
)

KEY_ONE = KeyVector(
    base58="11111111111111111111111111111112",
    bytes=bytes([0] * 31 + [1]),
)

KEY_MAX = KeyVector(
    base58="JEKNVnkbo3jma5nREBBJCDoXFVeKkD56V3xKrvRmWxFG",
    bytes=bytes([255] * 32),
)


class Test(unittest.TestCase):
    def test_from_str(self):
        for vector in (KEY_ZERO, KEY_ONE, KEY_MAX):
            key = PublicKey.from_str(vector.base58)
            self.assertEqual(key.key, vector.bytes)
            self.assertEqual(str(key), vector.base58)

    def test_zero(self):
        self.assertEqual(PublicKey.from_str(KEY_ZERO.base58), PublicKey.ZERO)
        self.assertTrue(PublicKey.ZERO.is_zero())
        self.assertFalse(PublicKey(KEY_ONE.bytes).is_zero())

    def test_invalid(self):
        self.assertRaises(ParsePublicKeyError, PublicKey, b"\x00" * 31)
        self.assertRaises(ParsePublicKeyError, PublicKey, "not bytes")
        self.assertRaises(ParsePublicKeyError, PublicKey.from_str, "0OIl")
        self.assertRaises(ParsePublicKeyError, PublicKey.from_str, "1111")

    def test_equality_and_hash(self):
        a = PublicKey(KEY_ONE.bytes)
        b = PublicKey.from_str(KEY_ONE.base58)
        self.assertEqual(a, b)
        self.assertEqual(len({a, b}), 1)
        self.assertNotEqual(a, PublicKey.ZERO)
        self.assertEqual(repr(a), f"PublicKey({KEY_ONE.base58})")

    def test_serialize(self):
        key = PublicKey(KEY_MAX.bytes)
        ser = Serializer()
        key.serialize(ser)
        self.assertEqual(ser.output(), KEY_MAX.bytes)
        self.assertEqual(PublicKey.deserialize(Deserializer(ser.output())), key)

    def test_is_on_curve(self):
        # ed25519 base point (y = 4/5) and the identity point (y = 1).
        base_point = bytes.fromhex(
            "5866666666666666666666666666666666666666666666666666666666666666"
        )
        self.assertTrue(PublicKey(base_point).is_on_curve())
        self.assertTrue(PublicKey(KEY_ONE.bytes[::-1]).is_on_curve())

    def test_solders_conversion(self):
        key = PublicKey(KEY_MAX.bytes)
        self.assertEqual(str(key.to_solders()), KEY_MAX.base58)
        self.assertEqual(PublicKey.from_solders(Pubkey.from_string(KEY_MAX.base58)), key)

    def test_find_program_address(self):
        program_id = PublicKey.from_str("metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s")
        seeds = [b"metadata", program_id.key, KEY_MAX.bytes]

        address, bump = PublicKey.find_program_address(seeds, program_id)
        self.assertFalse(address.is_on_curve())
        self.assertTrue(0 <= bump <= 255)
        self.assertEqual(
            PublicKey.create_program_address([*seeds, bytes([bump])], program_id),
            address,
        )
        self.assertEqual(
            PublicKey.find_program_address(seeds, program_id), (address, bump)
        )
        self.assertEqual(
            Pubkey.create_program_address(
                [*seeds, bytes([bump])], program_id.to_solders()
            ),
            address.to_solders(),
        )

    def test_invalid_seeds(self):
        program_id = PublicKey(KEY_ONE.bytes)
        with self.assertRaises(InvalidSeedsError):
            PublicKey.create_program_address([b"x" * 33], program_id)
        with self.assertRaises(InvalidSeedsError):
            PublicKey.create_program_address([b"x"] * 17, program_id)
        with self.assertRaises(InvalidSeedsError):
            PublicKey.find_program_address([b"x"] * 16, program_id)
        with self.assertRaises(InvalidSeedsError):
            PublicKey.find_program_address([b"x" * 33], program_id)
