# Copyright © The solana-tokenmeta Authors
# SPDX-License-Identifier: Apache-2.0

"""
Borsh (Binary Object Representation Serializer for Hashing) implementation.

This module provides the serializer and deserializer used to encode instruction
payloads and decode account data for Solana programs. Borsh is a deterministic,
little-endian, non-self-describing format: the layout of every value is fixed by
the program that consumes it.

Learn more at https://borsh.io

The module contains:
- Protocol interfaces for serializable and deserializable objects
- Deserializer class for reading Borsh-encoded data
- Serializer class for writing Borsh-encoded data
- Typed errors raised when a value cannot be encoded or decoded
- Helper functions for encoding values

Layout rules:
- Integers are fixed width, little endian and unsigned
- Booleans are a single byte, 0 or 1
- Strings and byte vectors carry a u32 length prefix
- Sequences carry a u32 element count
- Options carry a one byte tag (0 = None, 1 = Some) followed by the value
- Enums carry a u8 variant index followed by the variant fields

Examples:
    Basic serialization::

        from solana_tokenmeta.borsh import Serializer, Deserializer

        ser = Serializer()
        ser.str("hello")
        ser.option(42, Serializer.u64)
        data = ser.output()

        der = Deserializer(data)
        der.str()                     # "hello"
        der.option(Deserializer.u64)  # 42

    Working with custom structures::

        class Creator:
            def serialize(self, serializer):
                serializer.struct(self.address)
                serializer.bool(self.verified)
                serializer.u8(self.share)

            @staticmethod
            def deserialize(deserializer):
                return Creator(
                    deserializer.struct(PublicKey),
                    deserializer.bool(),
                    deserializer.u8(),
                )
"""

from __future__ import annotations

import io
import typing
import unittest
from typing import Dict, List, Optional

from typing_extensions import Protocol

MAX_U8 = 2**8 - 1
MAX_U16 = 2**16 - 1
MAX_U32 = 2**32 - 1
MAX_U64 = 2**64 - 1
MAX_U128 = 2**128 - 1


class BorshError(Exception):
    """Base class for Borsh encoding and decoding failures."""


class EncodingError(BorshError):
    """A value could not be written in the requested Borsh layout.

    Raised instead of producing a corrupt payload, e.g. for integers outside
    the range of their width, negative integers or text that is not valid
    UTF-8.
    """


class DecodingError(BorshError):
    """The input bytes do not hold a valid value of the requested layout."""


class Deserializable(Protocol):
    """Protocol for objects that can be deserialized from a Borsh byte stream."""

    @classmethod
    def from_bytes(cls, indata: bytes) -> Deserializable:
        der = Deserializer(indata)
        return der.struct(cls)

    @staticmethod
    def deserialize(deserializer: Deserializer) -> Deserializable:
        ...


class Serializable(Protocol):
    """Protocol for objects that can be serialized into a Borsh byte stream."""

    def to_bytes(self) -> bytes:
        ser = Serializer()
        ser.struct(self)
        return ser.output()

    def serialize(self, serializer: Serializer):
        ...


class Deserializer:
    """A Borsh deserializer for reading data from a byte stream.

    The Deserializer keeps a cursor into the input and exposes one method per
    Borsh primitive. Every failure raises :class:`DecodingError`.

    Examples:
        Basic usage::

            der = Deserializer(b"\\x01\\x05\\x00\\x00\\x00hello")
            der.bool()  # True
            der.str()   # "hello"

        Reading collections::

            values = der.sequence(Deserializer.str)
            mapping = der.map(Deserializer.str, Deserializer.u32)
    """

    _input: io.BytesIO
    _length: int

    def __init__(self, data: bytes):
        self._length = len(data)
        self._input = io.BytesIO(data)

    def remaining(self) -> int:
        """Get the number of bytes remaining in the input stream."""
        return self._length - self._input.tell()

    def bool(self) -> bool:
        """Read a boolean encoded as a single 0 or 1 byte.

        Raises:
            DecodingError: If the byte is neither 0 nor 1.
        """
        value = self._read_int(1)
        if value == 0:
            return False
        elif value == 1:
            return True
        else:
            raise DecodingError(f"Unexpected boolean value: {value}")

    def to_bytes(self) -> bytes:
        """Read a u32 length-prefixed byte array."""
        return self._read(self.u32())

    def fixed_bytes(self, length: int) -> bytes:
        """Read exactly ``length`` raw bytes."""
        return self._read(length)

    def map(
        self,
        key_decoder: typing.Callable[[Deserializer], typing.Any],
        value_decoder: typing.Callable[[Deserializer], typing.Any],
    ) -> Dict[typing.Any, typing.Any]:
        """Read a map encoded as a u32 entry count followed by key-value pairs.

        Args:
            key_decoder: Function to decode each key from the stream.
            value_decoder: Function to decode each value from the stream.
        """
        length = self.u32()
        values: Dict = {}
        while len(values) < length:
            key = key_decoder(self)
            value = value_decoder(self)
            values[key] = value
        return values

    def sequence(
        self,
        value_decoder: typing.Callable[[Deserializer], typing.Any],
    ) -> List[typing.Any]:
        """Read a u32 count followed by that many elements."""
        length = self.u32()
        values: List = []
        while len(values) < length:
            values.append(value_decoder(self))
        return values

    def option(
        self,
        value_decoder: typing.Callable[[Deserializer], typing.Any],
    ) -> Optional[typing.Any]:
        """Read an optional value: a presence tag, then the value if present.

        Raises:
            DecodingError: If the tag is neither 0 nor 1.
        """
        tag = self._read_int(1)
        if tag == 0:
            return None
        elif tag == 1:
            return value_decoder(self)
        else:
            raise DecodingError(f"Unexpected option tag: {tag}")

    def str(self) -> str:
        """Read a u32 length-prefixed UTF-8 string.

        Raises:
            DecodingError: If the bytes are not valid UTF-8.
        """
        raw = self.to_bytes()
        try:
            return raw.decode()
        except UnicodeDecodeError as e:
            raise DecodingError(f"Invalid UTF-8 string: {e}") from e

    def struct(self, struct: typing.Any) -> typing.Any:
        """Deserialize a custom struct through its ``deserialize`` method."""
        return struct.deserialize(self)

    def variant_index(self) -> int:
        """Read the u8 variant index of an enum."""
        return self.u8()

    def u8(self) -> int:
        return self._read_int(1)

    def u16(self) -> int:
        return self._read_int(2)

    def u32(self) -> int:
        return self._read_int(4)

    def u64(self) -> int:
        return self._read_int(8)

    def u128(self) -> int:
        return self._read_int(16)

    def _read(self, length: int) -> bytes:
        value = self._input.read(length)
        if value is None or len(value) < length:
            actual_length = 0 if value is None else len(value)
            error = (
                f"Unexpected end of input. Requested: {length}, found: {actual_length}"
            )
            raise DecodingError(error)
        return value

    def _read_int(self, length: int) -> int:
        return int.from_bytes(self._read(length), byteorder="little", signed=False)


class Serializer:
    """A Borsh serializer for writing data to a byte stream.

    Every method validates its input and raises :class:`EncodingError` when the
    value does not fit the requested layout, so a payload is either complete and
    correct or not produced at all.

    Examples:
        Basic usage::

            ser = Serializer()
            ser.u8(0)
            ser.str("My NFT")
            ser.option(None, Serializer.u64)
            data = ser.output()

        Serializing collections::

            ser.sequence(["a", "b", "c"], Serializer.str)
            ser.map({"key": 42}, Serializer.str, Serializer.u32)
    """

    _output: io.BytesIO

    def __init__(self):
        self._output = io.BytesIO()

    def output(self) -> bytes:
        """Get the accumulated serialized data as bytes."""
        return self._output.getvalue()

    def bool(self, value: bool):
        if not isinstance(value, bool):
            raise EncodingError(f"Cannot encode {value!r} as bool")
        self._write_int(int(value), 1)

    def to_bytes(self, value: bytes):
        """Write a u32 length prefix followed by the raw bytes."""
        self.u32(len(value))
        self.fixed_bytes(value)

    def fixed_bytes(self, value: bytes):
        """Write raw bytes without any length prefix."""
        if not isinstance(value, (bytes, bytearray)):
            raise EncodingError(f"Cannot encode {type(value).__name__} as bytes")
        self._output.write(value)

    def map(
        self,
        values: typing.Dict[typing.Any, typing.Any],
        key_encoder: typing.Callable[[Serializer, typing.Any], None],
        value_encoder: typing.Callable[[Serializer, typing.Any], None],
    ):
        """Write a map as a u32 entry count followed by pairs ordered by key.

        Args:
            values: The dictionary to serialize. Keys must be mutually orderable.
            key_encoder: Function to encode each key.
            value_encoder: Function to encode each value.
        """
        try:
            items = sorted(values.items(), key=lambda item: item[0])
        except TypeError as e:
            raise EncodingError(f"Map keys are not orderable: {e}") from e

        self.u32(len(items))
        for key, value in items:
            self.fixed_bytes(encoder(key, key_encoder))
            self.fixed_bytes(encoder(value, value_encoder))

    @staticmethod
    def sequence_serializer(
        value_encoder: typing.Callable[[Serializer, typing.Any], None],
    ):
        """Create a reusable sequence serializer for ``value_encoder``.

        Examples:
            Serializing an optional list of strings::

                str_seq = Serializer.sequence_serializer(Serializer.str)
                ser.option(["a", "b"], str_seq)
        """
        return lambda self, values: self.sequence(values, value_encoder)

    @staticmethod
    def option_serializer(
        value_encoder: typing.Callable[[Serializer, typing.Any], None],
    ):
        """Create a reusable option serializer for ``value_encoder``."""
        return lambda self, value: self.option(value, value_encoder)

    def sequence(
        self,
        values: typing.Sequence[typing.Any],
        value_encoder: typing.Callable[[Serializer, typing.Any], None],
    ):
        """Write a u32 element count followed by the elements."""
        self.u32(len(values))
        for value in values:
            self.fixed_bytes(encoder(value, value_encoder))

    def option(
        self,
        value: Optional[typing.Any],
        value_encoder: typing.Callable[[Serializer, typing.Any], None],
    ):
        """Write an optional value.

        ``None`` is written as a single ``0`` byte; any other value as a ``1``
        byte followed by the output of ``value_encoder``.
        """
        if value is None:
            self._write_int(0, 1)
        else:
            self._write_int(1, 1)
            value_encoder(self, value)

    def str(self, value: str):
        """Write a u32 length-prefixed UTF-8 string.

        Raises:
            EncodingError: If ``value`` is not a str or cannot be encoded as UTF-8.
        """
        if not isinstance(value, str):
            raise EncodingError(f"Cannot encode {type(value).__name__} as string")
        try:
            raw = value.encode()
        except UnicodeEncodeError as e:
            raise EncodingError(f"Cannot encode string as UTF-8: {e}") from e
        self.to_bytes(raw)

    def struct(self, value: typing.Any):
        """Serialize a custom struct through its ``serialize`` method."""
        if not hasattr(value, "serialize"):
            raise EncodingError(f"{type(value).__name__} is not serializable")
        value.serialize(self)

    def variant_index(self, index: int):
        """Write the u8 variant index of an enum."""
        self.u8(index)

    def u8(self, value: int):
        self._write_checked(value, MAX_U8, 1, "u8")

    def u16(self, value: int):
        self._write_checked(value, MAX_U16, 2, "u16")

    def u32(self, value: int):
        self._write_checked(value, MAX_U32, 4, "u32")

    def u64(self, value: int):
        self._write_checked(value, MAX_U64, 8, "u64")

    def u128(self, value: int):
        self._write_checked(value, MAX_U128, 16, "u128")

    def _write_checked(self, value: int, max_value: int, length: int, name: str):
        # bool is an int subclass, but never a valid integer field.
        if not isinstance(value, int) or isinstance(value, bool):
            raise EncodingError(f"Cannot encode {value!r} into {name}")
        if value < 0 or value > max_value:
            raise EncodingError(f"Cannot encode {value} into {name}")

        self._write_int(value, length)

    def _write_int(self, value: int, length: int):
        self._output.write(value.to_bytes(length, "little", signed=False))


def encoder(
    value: typing.Any, encoder: typing.Callable[[Serializer, typing.Any], typing.Any]
) -> bytes:
    """Encode a single value using the specified encoder function.

    Examples:
        Encoding a string::

            data = encoder("hello", Serializer.str)  # b"\\x05\\x00\\x00\\x00hello"
    """
    ser = Serializer()
    encoder(ser, value)
    return ser.output()


class Test(unittest.TestCase):
    def test_bool_true(self):
        in_value = True

        ser = Serializer()
        ser.bool(in_value)
        der = Deserializer(ser.output())
        out_value = der.bool()

        self.assertEqual(in_value, out_value)

    def test_bool_error(self):
        ser = Serializer()
        ser.u8(32)
        der = Deserializer(ser.output())
        with self.assertRaises(DecodingError):
            der.bool()

    def test_bytes(self):
        in_value = b"1234567890"

        ser = Serializer()
        ser.to_bytes(in_value)
        self.assertEqual(ser.output()[:4], b"\x0a\x00\x00\x00")
        der = Deserializer(ser.output())
        out_value = der.to_bytes()

        self.assertEqual(in_value, out_value)

    def test_map(self):
        in_value = {"c": 23829, "a": 12345, "b": 99234}

        ser = Serializer()
        ser.map(in_value, Serializer.str, Serializer.u32)
        der = Deserializer(ser.output())
        out_value = der.map(Deserializer.str, Deserializer.u32)

        self.assertEqual(in_value, out_value)
        self.assertEqual(list(out_value.keys()), ["a", "b", "c"])

    def test_sequence(self):
        in_value = ["a", "abc", "def", "ghi"]

        ser = Serializer()
        ser.sequence(in_value, Serializer.str)
        der = Deserializer(ser.output())
        out_value = der.sequence(Deserializer.str)

        self.assertEqual(in_value, out_value)

    def test_option(self):
        ser = Serializer()
        ser.option(None, Serializer.u64)
        ser.option(7, Serializer.u64)
        ser.option(["x"], Serializer.sequence_serializer(Serializer.str))
        self.assertEqual(ser.output()[:2], b"\x00\x01")

        der = Deserializer(ser.output())
        self.assertIsNone(der.option(Deserializer.u64))
        self.assertEqual(der.option(Deserializer.u64), 7)
        self.assertEqual(
            der.option(lambda d: d.sequence(Deserializer.str)),
            ["x"],
        )
        self.assertEqual(der.remaining(), 0)

    def test_option_bad_tag(self):
        der = Deserializer(b"\x02")
        with self.assertRaises(DecodingError):
            der.option(Deserializer.u8)

    def test_str(self):
        ser = Serializer()
        ser.str("hello")

        self.assertEqual(ser.output(), b"\x05\x00\x00\x00hello")
        self.assertEqual(Deserializer(ser.output()).str(), "hello")

    def test_str_invalid_utf8(self):
        der = Deserializer(b"\x02\x00\x00\x00\xff\xfe")
        with self.assertRaises(DecodingError):
            der.str()

    def test_integers(self):
        ser = Serializer()
        ser.u8(15)
        ser.u16(11115)
        ser.u32(1111111115)
        ser.u64(1111111111111111115)
        ser.u128(1111111111111111111111111111111111115)

        der = Deserializer(ser.output())
        self.assertEqual(der.u8(), 15)
        self.assertEqual(der.u16(), 11115)
        self.assertEqual(der.u32(), 1111111115)
        self.assertEqual(der.u64(), 1111111111111111115)
        self.assertEqual(der.u128(), 1111111111111111111111111111111111115)

    def test_u16_little_endian(self):
        self.assertEqual(encoder(500, Serializer.u16), b"\xf4\x01")

    def test_integer_out_of_range(self):
        ser = Serializer()
        with self.assertRaises(EncodingError):
            ser.u8(256)
        with self.assertRaises(EncodingError):
            ser.u16(-1)
        with self.assertRaises(EncodingError):
            ser.u64(MAX_U64 + 1)
        with self.assertRaises(EncodingError):
            ser.u32("12")
        with self.assertRaises(EncodingError):
            ser.u8(True)

    def test_wrong_types(self):
        ser = Serializer()
        with self.assertRaises(EncodingError):
            ser.str(b"bytes")
        with self.assertRaises(EncodingError):
            ser.bool(1)
        with self.assertRaises(EncodingError):
            ser.fixed_bytes("not bytes")
        with self.assertRaises(EncodingError):
            ser.struct(object())

    def test_unexpected_end_of_input(self):
        der = Deserializer(b"\x01\x00")
        with self.assertRaises(DecodingError) as cm:
            der.u32()
        self.assertIn("Requested: 4, found: 2", str(cm.exception))


if __name__ == "__main__":
    unittest.main()
