import typing

from behave import then, use_step_matcher, when

from solana_tokenmeta.public_key import InvalidSeedsError, ParsePublicKeyError, PublicKey
from solana_tokenmeta.token_metadata import ProgramConfig, TokenMetadataProgram

# Use regular expressions
use_step_matcher("re")


@when(r"I parse the public key")
def when_parse_public_key(context: typing.Any):
    try:
        context.output = PublicKey.from_str(context.input)
    except ParsePublicKeyError as e:
        context.output = e


@when(r"I convert the public key to a string")
def when_public_key_to_string(context: typing.Any):
    context.output = str(context.input)


@when(r"I derive the (?P<kind>metadata|master edition) address of mint (?P<mint>\S+)")
def when_derive_address(context: typing.Any, kind: str, mint: str):
    program = TokenMetadataProgram(ProgramConfig(program_id=context.input))
    mint_key = PublicKey.from_str(mint)
    if kind == "metadata":
        context.output = program.find_metadata_address(mint_key)
    else:
        context.output = program.find_master_edition_address(mint_key)


@when(r"I create a program address from (?P<count>[0-9]+) seeds of length (?P<length>[0-9]+)")
def when_create_program_address(context: typing.Any, count: str, length: str):
    seeds = [b"s" * int(length)] * int(count)
    try:
        context.output = PublicKey.create_program_address(seeds, context.input)
    except InvalidSeedsError as e:
        context.output = e


@then(r"the public key bytes should be (?P<expected>\S+)")
def then_public_key_bytes(context: typing.Any, expected: str):
    assert isinstance(context.output, PublicKey), str(context.output)
    assert context.output.key == bytes.fromhex(expected.removeprefix("0x"))


@then(r"I should fail to parse the public key")
def then_fail_public_key(context: typing.Any):
    assert isinstance(context.output, ParsePublicKeyError)


@then(r"the derived address should be off the curve")
def then_derived_off_curve(context: typing.Any):
    address, bump = context.output
    assert not address.is_on_curve()
    assert 0 <= bump <= 255


@then(r"the derivation should fail")
def then_derivation_fails(context: typing.Any):
    assert isinstance(context.output, InvalidSeedsError)
