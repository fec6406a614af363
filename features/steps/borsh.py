import typing

from behave import then, use_step_matcher, when

from solana_tokenmeta.borsh import BorshError, Deserializer, Serializer
from solana_tokenmeta.public_key import PublicKey

# Use regular expressions
use_step_matcher("re")

VALUE_TYPES = r"bool|u8|u16|u32|u64|u128|key|bytes|string"
METHOD_NAMES = {"bytes": "to_bytes", "string": "str"}


def encoder_for(input_type: str) -> typing.Callable[[Serializer, typing.Any], None]:
    if input_type == "key":
        return Serializer.struct
    return getattr(Serializer, METHOD_NAMES.get(input_type, input_type))


def decoder_for(input_type: str) -> typing.Callable[[Deserializer], typing.Any]:
    if input_type == "key":
        return PublicKey.deserialize
    return getattr(Deserializer, METHOD_NAMES.get(input_type, input_type))


def serialize_with(context: typing.Any, encode: typing.Callable[[Serializer], None]):
    ser = Serializer()
    try:
        encode(ser)
        context.output = ser.output()
    except BorshError as e:
        context.output = e


def deserialize_with(context: typing.Any, decode: typing.Callable[[Deserializer], typing.Any]):
    des = Deserializer(context.input)
    try:
        context.output = decode(des)
    except BorshError as e:
        context.output = e


@when(rf"I serialize as (?P<input_type>{VALUE_TYPES})")
def when_serialize(context: typing.Any, input_type: str):
    encode = encoder_for(input_type)
    serialize_with(context, lambda ser: encode(ser, context.input))


@when(rf"I deserialize as (?P<input_type>{VALUE_TYPES})")
def when_deserialize(context: typing.Any, input_type: str):
    deserialize_with(context, decoder_for(input_type))


@when(rf"I serialize as sequence of (?P<input_type>{VALUE_TYPES})")
def when_serialize_sequence(context: typing.Any, input_type: str):
    seq_ser = Serializer.sequence_serializer(encoder_for(input_type))
    serialize_with(context, lambda ser: seq_ser(ser, context.input))


@when(rf"I deserialize as sequence of (?P<input_type>{VALUE_TYPES})")
def when_deserialize_sequence(context: typing.Any, input_type: str):
    decode = decoder_for(input_type)
    deserialize_with(context, lambda des: des.sequence(decode))


@when(rf"I serialize as option of (?P<input_type>{VALUE_TYPES})")
def when_serialize_option(context: typing.Any, input_type: str):
    encode = encoder_for(input_type)
    serialize_with(context, lambda ser: ser.option(context.input, encode))


@when(r"I serialize none as option")
def when_serialize_none(context: typing.Any):
    serialize_with(context, lambda ser: ser.option(None, Serializer.u8))


@when(rf"I deserialize as option of (?P<input_type>{VALUE_TYPES})")
def when_deserialize_option(context: typing.Any, input_type: str):
    decode = decoder_for(input_type)
    deserialize_with(context, lambda des: des.option(decode))


@when(r"I deserialize as fixed bytes with length (?P<length>[0-9]+)")
def when_deserialize_fixed_bytes(context: typing.Any, length: str):
    deserialize_with(context, lambda des: des.fixed_bytes(int(length)))


@then(r"the serialization should fail")
def then_fail_serialization(context: typing.Any):
    assert isinstance(context.output, BorshError)


@then(r"the deserialization should fail")
def then_fail_deserialization(context: typing.Any):
    assert isinstance(context.output, BorshError)
