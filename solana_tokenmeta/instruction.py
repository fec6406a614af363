# Copyright © The solana-tokenmeta Authors
# SPDX-License-Identifier: Apache-2.0

"""
Instruction values and declarative account layouts.

A Solana instruction names the program to invoke, the ordered list of accounts
it touches (each flagged as signer and/or writable) and an opaque data payload.
The order and flags are part of the program's ABI, so every builder describes
its accounts with an :class:`InstructionLayout`: a fixed tuple of
:class:`AccountSlot` entries resolved against the builder's parameters.

Optional accounts are slots with an ``include`` predicate. They sit at the end
of a layout and are dropped when the predicate rejects the supplied key, which
is the only way an account list for a given instruction changes length.

Examples:
    Describing and resolving a layout::

        LAYOUT = InstructionLayout(
            InstructionKind.SIGN_METADATA,
            (
                AccountSlot("metadata", is_writable=True),
                AccountSlot("creator", is_signer=True),
            ),
        )
        accounts = LAYOUT.accounts(params, config)
"""

from __future__ import annotations

import typing
import unittest
from dataclasses import dataclass, field

from .public_key import PublicKey


def is_supplied(key: PublicKey) -> bool:
    """Inclusion predicate for optional accounts: the key is not the zero key."""
    return not key.is_zero()


class MissingAccountError(Exception):
    """A layout slot could not be resolved to a public key."""


@dataclass(frozen=True)
class AccountMeta:
    pubkey: PublicKey
    is_signer: bool
    is_writable: bool


@dataclass(frozen=True)
class Instruction:
    """A fully built instruction, ready to be placed in a transaction."""

    program_id: PublicKey
    accounts: typing.Tuple[AccountMeta, ...]
    data: bytes

    def __str__(self) -> str:
        accounts = ", ".join(
            f"{meta.pubkey}{'[s]' if meta.is_signer else ''}"
            f"{'[w]' if meta.is_writable else ''}"
            for meta in self.accounts
        )
        return f"Instruction[{self.program_id}, ({accounts}), {self.data.hex()}]"


@dataclass(frozen=True)
class AccountSlot:
    """One position in an instruction's account list.

    Attributes:
        name: Attribute looked up on the parameters first, then on the
            program configuration (e.g. ``system_program``).
        is_signer: Either a fixed flag or the name of a boolean attribute of
            the parameters that decides it per call.
        is_writable: Whether the program may modify the account.
        include: Predicate on the resolved key; ``None`` means always included.
    """

    name: str
    is_signer: typing.Union[bool, str] = False
    is_writable: bool = False
    include: typing.Optional[typing.Callable[[PublicKey], bool]] = None

    @property
    def optional(self) -> bool:
        return self.include is not None

    def resolve(
        self, params: typing.Any, config: typing.Any
    ) -> typing.Optional[AccountMeta]:
        if hasattr(params, self.name):
            key = getattr(params, self.name)
        elif hasattr(config, self.name):
            key = getattr(config, self.name)
        else:
            raise MissingAccountError(f"No account supplied for slot '{self.name}'")

        if not isinstance(key, PublicKey):
            raise MissingAccountError(
                f"Account '{self.name}' must be a PublicKey, got {type(key).__name__}"
            )
        if self.include is not None and not self.include(key):
            return None

        if isinstance(self.is_signer, str):
            is_signer = bool(getattr(params, self.is_signer))
        else:
            is_signer = self.is_signer
        return AccountMeta(key, is_signer, self.is_writable)


@dataclass(frozen=True)
class InstructionLayout:
    """The fixed account schema of one instruction variant."""

    kind: int
    slots: typing.Tuple[AccountSlot, ...] = field(default_factory=tuple)

    def __post_init__(self):
        seen_optional = False
        for slot in self.slots:
            if slot.optional:
                seen_optional = True
            elif seen_optional:
                raise ValueError(
                    f"Required slot '{slot.name}' follows an optional slot"
                )

    @property
    def required_len(self) -> int:
        return sum(1 for slot in self.slots if not slot.optional)

    @property
    def max_len(self) -> int:
        return len(self.slots)

    def accounts(
        self, params: typing.Any, config: typing.Any
    ) -> typing.Tuple[AccountMeta, ...]:
        metas = (slot.resolve(params, config) for slot in self.slots)
        return tuple(meta for meta in metas if meta is not None)


class Test(unittest.TestCase):
    @dataclass
    class Params:
        metadata: PublicKey
        authority: PublicKey
        authority_is_signer: bool = True
        record: PublicKey = PublicKey.ZERO

    @dataclass
    class Config:
        system_program: PublicKey = PublicKey.ZERO

    LAYOUT = InstructionLayout(
        7,
        (
            AccountSlot("metadata", is_writable=True),
            AccountSlot("authority", is_signer="authority_is_signer"),
            AccountSlot("system_program"),
            AccountSlot("record", include=is_supplied),
        ),
    )

    def setUp(self):
        self.metadata = PublicKey(bytes([1] * 32))
        self.authority = PublicKey(bytes([2] * 32))

    def test_resolve(self):
        params = Test.Params(self.metadata, self.authority)
        accounts = Test.LAYOUT.accounts(params, Test.Config())

        self.assertEqual(
            accounts,
            (
                AccountMeta(self.metadata, False, True),
                AccountMeta(self.authority, True, False),
                AccountMeta(PublicKey.ZERO, False, False),
            ),
        )
        self.assertEqual(Test.LAYOUT.required_len, 3)
        self.assertEqual(Test.LAYOUT.max_len, 4)

    def test_optional_slot_and_dynamic_signer(self):
        record = PublicKey(bytes([3] * 32))
        params = Test.Params(
            self.metadata, self.authority, authority_is_signer=False, record=record
        )
        accounts = Test.LAYOUT.accounts(params, Test.Config())

        self.assertEqual(len(accounts), 4)
        self.assertFalse(accounts[1].is_signer)
        self.assertEqual(accounts[3], AccountMeta(record, False, False))

    def test_missing_account(self):
        layout = InstructionLayout(0, (AccountSlot("unknown"),))
        with self.assertRaises(MissingAccountError):
            layout.accounts(Test.Params(self.metadata, self.authority), Test.Config())

    def test_wrong_account_type(self):
        params = Test.Params(self.metadata, "not a key")
        with self.assertRaises(MissingAccountError):
            Test.LAYOUT.accounts(params, Test.Config())

    def test_optional_must_trail(self):
        with self.assertRaises(ValueError):
            InstructionLayout(
                0, (AccountSlot("a", include=is_supplied), AccountSlot("b"))
            )

    def test_str(self):
        instruction = Instruction(
            self.metadata,
            (AccountMeta(self.authority, True, True),),
            b"\x07",
        )
        self.assertIn("[s][w]", str(instruction))
        self.assertTrue(str(instruction).endswith("07]"))
