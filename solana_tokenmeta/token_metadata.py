# Copyright © The solana-tokenmeta Authors
# SPDX-License-Identifier: Apache-2.0

"""
Instruction builders for the Metaplex token-metadata program.

The token-metadata program attaches metadata (name, symbol, URI, royalties,
creators, collection membership) to SPL token mints and manages master editions
and numbered prints of NFTs. This module turns typed parameter objects into
:class:`~solana_tokenmeta.instruction.Instruction` values the program accepts:
the right program id, the account list in ABI order with the right signer and
writable flags, and a Borsh payload starting with the instruction discriminant.

Key Features:
- **Payload types**: ``Data``, ``DataV2``, ``Creator``, ``Collection``, ``Uses``
  and ``CollectionDetails`` with Borsh serialization and deserialization
- **Builders**: one method per supported instruction on
  :class:`TokenMetadataProgram`
- **Declarative account layouts**: optional accounts (such as a collection
  authority record) are appended only when a non-zero key is supplied
- **Program-derived addresses**: metadata, master edition, edition marker and
  collection authority record PDAs
- **Account decoding**: :class:`MetadataAccount` parses on-chain metadata

Builders never touch the network and hold no state; a payload that cannot be
encoded raises :class:`~solana_tokenmeta.borsh.EncodingError`.

Examples:
    Creating metadata and a master edition for a fresh mint::

        from solana_tokenmeta.token_metadata import (
            DEFAULT_PROGRAM,
            CreateMasterEditionParams,
            CreateMetadataAccountV3Params,
            Creator,
            DataV2,
        )

        program = DEFAULT_PROGRAM
        metadata, _ = program.find_metadata_address(mint)
        edition, _ = program.find_master_edition_address(mint)

        create_metadata = program.create_metadata_account_v3(
            CreateMetadataAccountV3Params(
                metadata=metadata,
                mint=mint,
                mint_authority=wallet,
                payer=wallet,
                update_authority=wallet,
                update_authority_is_signer=True,
                is_mutable=True,
                data=DataV2(
                    name="Fake SMS #1355",
                    symbol="FSMB",
                    uri="https://34c7ef24f4v2aejh75xhxy5z6ars4xv47gpsdrei6fiowptk2nqq.arweave.net/3wXyF1wvK6ARJ_9ue-O58CMuXrz5nyHEiPFQ6z5q02E",
                    seller_fee_basis_points=100,
                    creators=[Creator(wallet, verified=True, share=100)],
                ),
            )
        )
        create_edition = program.create_master_edition_v3(
            CreateMasterEditionParams(
                edition=edition,
                mint=mint,
                update_authority=wallet,
                mint_authority=wallet,
                metadata=metadata,
                payer=wallet,
                max_supply=0,
            )
        )

    Using a program deployed at another address::

        program = TokenMetadataProgram(ProgramConfig(program_id=my_program_id))
"""

from __future__ import annotations

import typing
import unittest
from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional

from .borsh import (
    DecodingError,
    Deserializer,
    EncodingError,
    Serializer,
    encoder,
)
from .instruction import (
    AccountMeta,
    AccountSlot,
    Instruction,
    InstructionLayout,
    is_supplied,
)
from .public_key import PublicKey

TOKEN_METADATA_PROGRAM_ID = PublicKey.from_str(
    "metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s"
)
SYSTEM_PROGRAM_ID = PublicKey.from_str("11111111111111111111111111111111")
TOKEN_PROGRAM_ID = PublicKey.from_str("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")
SYSVAR_RENT_PUBKEY = PublicKey.from_str("SysvarRent111111111111111111111111111111111")

MAX_NAME_LENGTH = 32
MAX_SYMBOL_LENGTH = 10
MAX_URI_LENGTH = 200
MAX_CREATOR_LIMIT = 5
EDITION_MARKER_BIT_SIZE = 248
COLLECTION_DETAILS_V1 = 0

METADATA_PREFIX = b"metadata"
EDITION_SEED = b"edition"
COLLECTION_AUTHORITY_SEED = b"collection_authority"


class InstructionKind(IntEnum):
    """Discriminant of every token-metadata instruction, in program order."""

    CREATE_METADATA_ACCOUNT = 0
    UPDATE_METADATA_ACCOUNT = 1
    DEPRECATED_CREATE_MASTER_EDITION = 2
    DEPRECATED_MINT_NEW_EDITION_FROM_MASTER_EDITION_VIA_PRINTING_TOKEN = 3
    UPDATE_PRIMARY_SALE_HAPPENED_VIA_TOKEN = 4
    DEPRECATED_SET_RESERVATION_LIST = 5
    DEPRECATED_CREATE_RESERVATION_LIST = 6
    SIGN_METADATA = 7
    DEPRECATED_MINT_PRINTING_TOKENS_VIA_TOKEN = 8
    DEPRECATED_MINT_PRINTING_TOKENS = 9
    CREATE_MASTER_EDITION = 10
    MINT_NEW_EDITION_FROM_MASTER_EDITION_VIA_TOKEN = 11
    CONVERT_MASTER_EDITION_V1_TO_V2 = 12
    MINT_NEW_EDITION_FROM_MASTER_EDITION_VIA_VAULT_PROXY = 13
    PUFF_METADATA = 14
    UPDATE_METADATA_ACCOUNT_V2 = 15
    CREATE_METADATA_ACCOUNT_V2 = 16
    CREATE_MASTER_EDITION_V3 = 17
    VERIFY_COLLECTION = 18
    UTILIZE = 19
    APPROVE_USE_AUTHORITY = 20
    REVOKE_USE_AUTHORITY = 21
    UNVERIFY_COLLECTION = 22
    APPROVE_COLLECTION_AUTHORITY = 23
    REVOKE_COLLECTION_AUTHORITY = 24
    SET_AND_VERIFY_COLLECTION = 25
    FREEZE_DELEGATED_ACCOUNT = 26
    THAW_DELEGATED_ACCOUNT = 27
    REMOVE_CREATOR_VERIFICATION = 28
    BURN_NFT = 29
    VERIFY_SIZED_COLLECTION_ITEM = 30
    UNVERIFY_SIZED_COLLECTION_ITEM = 31
    SET_AND_VERIFY_SIZED_COLLECTION_ITEM = 32
    CREATE_METADATA_ACCOUNT_V3 = 33
    SET_COLLECTION_SIZE = 34
    SET_TOKEN_STANDARD = 35


class Key(IntEnum):
    """Account type tag stored in the first byte of program-owned accounts."""

    UNINITIALIZED = 0
    EDITION_V1 = 1
    MASTER_EDITION_V1 = 2
    RESERVATION_LIST_V1 = 3
    METADATA_V1 = 4
    RESERVATION_LIST_V2 = 5
    MASTER_EDITION_V2 = 6
    EDITION_MARKER = 7
    USE_AUTHORITY_RECORD = 8
    COLLECTION_AUTHORITY_RECORD = 9


class TokenStandard(IntEnum):
    NON_FUNGIBLE = 0
    FUNGIBLE_ASSET = 1
    FUNGIBLE = 2
    NON_FUNGIBLE_EDITION = 3


class UseMethod(IntEnum):
    BURN = 0
    MULTIPLE = 1
    SINGLE = 2


def _decode_enum(enum_type: typing.Type[IntEnum], value: int) -> typing.Any:
    try:
        return enum_type(value)
    except ValueError as e:
        raise DecodingError(f"Invalid {enum_type.__name__} value: {value}") from e


#
# Payload data types
#


@dataclass
class Creator:
    """A creator entitled to a ``share`` percent of royalties."""

    address: PublicKey
    verified: bool
    share: int

    def serialize(self, serializer: Serializer):
        serializer.struct(self.address)
        serializer.bool(self.verified)
        serializer.u8(self.share)

    @staticmethod
    def deserialize(deserializer: Deserializer) -> Creator:
        return Creator(
            address=deserializer.struct(PublicKey),
            verified=deserializer.bool(),
            share=deserializer.u8(),
        )


@dataclass
class Collection:
    """Reference from an item to the mint of its collection NFT."""

    verified: bool
    key: PublicKey

    def serialize(self, serializer: Serializer):
        serializer.bool(self.verified)
        serializer.struct(self.key)

    @staticmethod
    def deserialize(deserializer: Deserializer) -> Collection:
        return Collection(
            verified=deserializer.bool(), key=deserializer.struct(PublicKey)
        )


@dataclass
class Uses:
    use_method: UseMethod
    remaining: int
    total: int

    def serialize(self, serializer: Serializer):
        serializer.variant_index(int(self.use_method))
        serializer.u64(self.remaining)
        serializer.u64(self.total)

    @staticmethod
    def deserialize(deserializer: Deserializer) -> Uses:
        return Uses(
            use_method=_decode_enum(UseMethod, deserializer.variant_index()),
            remaining=deserializer.u64(),
            total=deserializer.u64(),
        )


@dataclass
class CollectionDetails:
    """Details of a sized collection parent. ``V1`` is the only variant."""

    size: int

    def serialize(self, serializer: Serializer):
        serializer.variant_index(COLLECTION_DETAILS_V1)
        serializer.u64(self.size)

    @staticmethod
    def deserialize(deserializer: Deserializer) -> CollectionDetails:
        variant = deserializer.variant_index()
        if variant != COLLECTION_DETAILS_V1:
            raise DecodingError(f"Invalid CollectionDetails variant: {variant}")
        return CollectionDetails(size=deserializer.u64())


def _serialize_creators(serializer: Serializer, creators: Optional[List[Creator]]):
    serializer.option(creators, Serializer.sequence_serializer(Serializer.struct))


def _deserialize_creators(deserializer: Deserializer) -> Optional[List[Creator]]:
    return deserializer.option(lambda der: der.sequence(Creator.deserialize))


@dataclass
class Data:
    """Metadata fields written by the V1 create and update instructions."""

    name: str
    symbol: str
    uri: str
    seller_fee_basis_points: int
    creators: Optional[List[Creator]] = None

    def serialize(self, serializer: Serializer):
        serializer.str(self.name)
        serializer.str(self.symbol)
        serializer.str(self.uri)
        serializer.u16(self.seller_fee_basis_points)
        _serialize_creators(serializer, self.creators)

    @staticmethod
    def deserialize(deserializer: Deserializer) -> Data:
        return Data(
            name=deserializer.str(),
            symbol=deserializer.str(),
            uri=deserializer.str(),
            seller_fee_basis_points=deserializer.u16(),
            creators=_deserialize_creators(deserializer),
        )

    def to_bytes(self) -> bytes:
        return encoder(self, Serializer.struct)

    @classmethod
    def from_bytes(cls, indata: bytes) -> Data:
        return Deserializer(indata).struct(cls)


@dataclass
class DataV2:
    """``Data`` extended with collection membership and uses."""

    name: str
    symbol: str
    uri: str
    seller_fee_basis_points: int
    creators: Optional[List[Creator]] = None
    collection: Optional[Collection] = None
    uses: Optional[Uses] = None

    def serialize(self, serializer: Serializer):
        serializer.str(self.name)
        serializer.str(self.symbol)
        serializer.str(self.uri)
        serializer.u16(self.seller_fee_basis_points)
        _serialize_creators(serializer, self.creators)
        serializer.option(self.collection, Serializer.struct)
        serializer.option(self.uses, Serializer.struct)

    @staticmethod
    def deserialize(deserializer: Deserializer) -> DataV2:
        return DataV2(
            name=deserializer.str(),
            symbol=deserializer.str(),
            uri=deserializer.str(),
            seller_fee_basis_points=deserializer.u16(),
            creators=_deserialize_creators(deserializer),
            collection=deserializer.option(Collection.deserialize),
            uses=deserializer.option(Uses.deserialize),
        )

    def to_bytes(self) -> bytes:
        return encoder(self, Serializer.struct)

    @classmethod
    def from_bytes(cls, indata: bytes) -> DataV2:
        return Deserializer(indata).struct(cls)


@dataclass
class MetadataAccount:
    """A decoded metadata account as stored on chain.

    The program pads ``name``, ``symbol`` and ``uri`` with NUL bytes up to their
    maximum lengths; the padding is stripped here. Accounts written by older
    program versions end before the later optional fields, which then decode as
    ``None``.
    """

    key: Key
    update_authority: PublicKey
    mint: PublicKey
    data: Data
    primary_sale_happened: bool
    is_mutable: bool
    edition_nonce: Optional[int] = None
    token_standard: Optional[TokenStandard] = None
    collection: Optional[Collection] = None
    uses: Optional[Uses] = None
    collection_details: Optional[CollectionDetails] = None

    @staticmethod
    def deserialize(deserializer: Deserializer) -> MetadataAccount:
        key = _decode_enum(Key, deserializer.u8())
        if key != Key.METADATA_V1:
            raise DecodingError(f"Not a metadata account, key is {key.name}")

        update_authority = deserializer.struct(PublicKey)
        mint = deserializer.struct(PublicKey)
        data = deserializer.struct(Data)
        data.name = data.name.rstrip("\x00")
        data.symbol = data.symbol.rstrip("\x00")
        data.uri = data.uri.rstrip("\x00")

        def tail(decoder):
            if deserializer.remaining() == 0:
                return None
            return deserializer.option(decoder)

        return MetadataAccount(
            key=key,
            update_authority=update_authority,
            mint=mint,
            data=data,
            primary_sale_happened=deserializer.bool(),
            is_mutable=deserializer.bool(),
            edition_nonce=tail(Deserializer.u8),
            token_standard=tail(
                lambda der: _decode_enum(TokenStandard, der.variant_index())
            ),
            collection=tail(Collection.deserialize),
            uses=tail(Uses.deserialize),
            collection_details=tail(CollectionDetails.deserialize),
        )

    @classmethod
    def from_bytes(cls, indata: bytes) -> MetadataAccount:
        return Deserializer(indata).struct(cls)

    def to_dict(self) -> typing.Dict[str, typing.Any]:
        """Plain JSON-compatible representation, keys rendered as base58."""

        def creator(c: Creator):
            return {"address": str(c.address), "verified": c.verified, "share": c.share}

        return {
            "key": self.key.name,
            "update_authority": str(self.update_authority),
            "mint": str(self.mint),
            "name": self.data.name,
            "symbol": self.data.symbol,
            "uri": self.data.uri,
            "seller_fee_basis_points": self.data.seller_fee_basis_points,
            "creators": None
            if self.data.creators is None
            else [creator(c) for c in self.data.creators],
            "primary_sale_happened": self.primary_sale_happened,
            "is_mutable": self.is_mutable,
            "edition_nonce": self.edition_nonce,
            "token_standard": None
            if self.token_standard is None
            else self.token_standard.name,
            "collection": None
            if self.collection is None
            else {"verified": self.collection.verified, "key": str(self.collection.key)},
            "uses": None
            if self.uses is None
            else {
                "use_method": self.uses.use_method.name,
                "remaining": self.uses.remaining,
                "total": self.uses.total,
            },
            "collection_details": None
            if self.collection_details is None
            else {"size": self.collection_details.size},
        }


#
# Instruction parameters
#


class InstructionParams:
    """Base class of builder parameters.

    Subclasses hold the accounts referenced by the instruction's layout and
    write the instruction arguments (everything after the discriminant) in
    ``serialize``.
    """

    def serialize(self, serializer: Serializer):
        pass


@dataclass
class CreateMetadataAccountParams(InstructionParams):
    metadata: PublicKey
    mint: PublicKey
    mint_authority: PublicKey
    payer: PublicKey
    update_authority: PublicKey
    update_authority_is_signer: bool
    is_mutable: bool
    data: Data

    def serialize(self, serializer: Serializer):
        serializer.struct(self.data)
        serializer.bool(self.is_mutable)


@dataclass
class CreateMetadataAccountV2Params(InstructionParams):
    metadata: PublicKey
    mint: PublicKey
    mint_authority: PublicKey
    payer: PublicKey
    update_authority: PublicKey
    update_authority_is_signer: bool
    is_mutable: bool
    data: DataV2

    def serialize(self, serializer: Serializer):
        serializer.struct(self.data)
        serializer.bool(self.is_mutable)


@dataclass
class CreateMetadataAccountV3Params(InstructionParams):
    metadata: PublicKey
    mint: PublicKey
    mint_authority: PublicKey
    payer: PublicKey
    update_authority: PublicKey
    update_authority_is_signer: bool
    is_mutable: bool
    data: DataV2
    collection_details: Optional[CollectionDetails] = None

    def serialize(self, serializer: Serializer):
        serializer.struct(self.data)
        serializer.bool(self.is_mutable)
        serializer.option(self.collection_details, Serializer.struct)


@dataclass
class UpdateMetadataAccountParams(InstructionParams):
    """Fields left as ``None`` are not changed by the program."""

    metadata: PublicKey
    update_authority: PublicKey
    data: Optional[Data] = None
    new_update_authority: Optional[PublicKey] = None
    primary_sale_happened: Optional[bool] = None

    def serialize(self, serializer: Serializer):
        serializer.option(self.data, Serializer.struct)
        serializer.option(self.new_update_authority, Serializer.struct)
        serializer.option(self.primary_sale_happened, Serializer.bool)


@dataclass
class UpdateMetadataAccountV2Params(InstructionParams):
    """Fields left as ``None`` are not changed by the program."""

    metadata: PublicKey
    update_authority: PublicKey
    data: Optional[DataV2] = None
    new_update_authority: Optional[PublicKey] = None
    primary_sale_happened: Optional[bool] = None
    is_mutable: Optional[bool] = None

    def serialize(self, serializer: Serializer):
        serializer.option(self.data, Serializer.struct)
        serializer.option(self.new_update_authority, Serializer.struct)
        serializer.option(self.primary_sale_happened, Serializer.bool)
        serializer.option(self.is_mutable, Serializer.bool)


@dataclass
class UpdatePrimarySaleHappenedViaTokenParams(InstructionParams):
    metadata: PublicKey
    owner: PublicKey
    token_account: PublicKey


@dataclass
class SignMetadataParams(InstructionParams):
    metadata: PublicKey
    creator: PublicKey


@dataclass
class CreateMasterEditionParams(InstructionParams):
    """Shared by ``create_master_edition`` and ``create_master_edition_v3``.

    ``max_supply`` of ``None`` allows unlimited prints, ``0`` makes the NFT a
    one of one.
    """

    edition: PublicKey
    mint: PublicKey
    update_authority: PublicKey
    mint_authority: PublicKey
    metadata: PublicKey
    payer: PublicKey
    max_supply: Optional[int] = None

    def serialize(self, serializer: Serializer):
        serializer.option(self.max_supply, Serializer.u64)


@dataclass
class MintNewEditionFromMasterEditionViaTokenParams(InstructionParams):
    new_metadata: PublicKey
    new_edition: PublicKey
    master_edition: PublicKey
    new_mint: PublicKey
    edition_mark: PublicKey
    new_mint_authority: PublicKey
    payer: PublicKey
    token_account_owner: PublicKey
    token_account: PublicKey
    new_metadata_update_authority: PublicKey
    master_metadata: PublicKey
    edition: int

    def serialize(self, serializer: Serializer):
        serializer.u64(self.edition)


@dataclass
class VerifyCollectionParams(InstructionParams):
    """Used by the verify, unverify and sized-item verify instructions.

    ``collection`` is the metadata account of the collection NFT.
    ``collection_authority_record`` is sent only when not the zero key, i.e.
    when a delegated collection authority signs.
    """

    metadata: PublicKey
    collection_authority: PublicKey
    payer: PublicKey
    collection_mint: PublicKey
    collection: PublicKey
    collection_master_edition_account: PublicKey
    collection_authority_record: PublicKey = PublicKey.ZERO


@dataclass
class UnverifyCollectionParams(InstructionParams):
    metadata: PublicKey
    collection_authority: PublicKey
    collection_mint: PublicKey
    collection: PublicKey
    collection_master_edition_account: PublicKey
    collection_authority_record: PublicKey = PublicKey.ZERO


@dataclass
class SetAndVerifyCollectionParams(InstructionParams):
    metadata: PublicKey
    collection_authority: PublicKey
    payer: PublicKey
    update_authority: PublicKey
    collection_mint: PublicKey
    collection: PublicKey
    collection_master_edition_account: PublicKey
    collection_authority_record: PublicKey = PublicKey.ZERO


@dataclass
class ApproveCollectionAuthorityParams(InstructionParams):
    collection_authority_record: PublicKey
    new_collection_authority: PublicKey
    update_authority: PublicKey
    payer: PublicKey
    metadata: PublicKey
    mint: PublicKey


@dataclass
class RevokeCollectionAuthorityParams(InstructionParams):
    collection_authority_record: PublicKey
    delegate_authority: PublicKey
    revoke_authority: PublicKey
    metadata: PublicKey
    mint: PublicKey


@dataclass
class SetCollectionSizeParams(InstructionParams):
    collection_metadata: PublicKey
    collection_authority: PublicKey
    collection_mint: PublicKey
    size: int
    collection_authority_record: PublicKey = PublicKey.ZERO

    def serialize(self, serializer: Serializer):
        serializer.u64(self.size)


@dataclass
class BurnNftParams(InstructionParams):
    metadata: PublicKey
    owner: PublicKey
    mint: PublicKey
    token_account: PublicKey
    master_edition_account: PublicKey
    spl_token_program: PublicKey
    collection_metadata: PublicKey


#
# Account layouts
#

_CREATE_METADATA_ACCOUNTS = (
    AccountSlot("metadata", is_writable=True),
    AccountSlot("mint"),
    AccountSlot("mint_authority", is_signer=True),
    AccountSlot("payer", is_signer=True, is_writable=True),
    AccountSlot("update_authority", is_signer="update_authority_is_signer"),
    AccountSlot("system_program"),
    AccountSlot("rent_sysvar"),
)

_UPDATE_METADATA_ACCOUNTS = (
    AccountSlot("metadata", is_writable=True),
    AccountSlot("update_authority", is_signer=True),
)


def _master_edition_accounts(metadata_writable: bool):
    return (
        AccountSlot("edition", is_writable=True),
        AccountSlot("mint", is_writable=True),
        AccountSlot("update_authority", is_signer=True),
        AccountSlot("mint_authority", is_signer=True),
        AccountSlot("payer", is_signer=True, is_writable=True),
        AccountSlot("metadata", is_writable=metadata_writable),
        AccountSlot("token_program"),
        AccountSlot("system_program"),
        AccountSlot("rent_sysvar"),
    )


def _sized_item_accounts(with_update_authority: bool):
    slots = [
        AccountSlot("metadata", is_writable=True),
        AccountSlot("collection_authority", is_signer=True, is_writable=True),
        AccountSlot("payer", is_signer=True, is_writable=True),
    ]
    if with_update_authority:
        slots.append(AccountSlot("update_authority"))
    slots += [
        AccountSlot("collection_mint"),
        AccountSlot("collection", is_writable=True),
        AccountSlot("collection_master_edition_account"),
        AccountSlot("collection_authority_record", include=is_supplied),
    ]
    return tuple(slots)


CREATE_METADATA_ACCOUNT = InstructionLayout(
    InstructionKind.CREATE_METADATA_ACCOUNT, _CREATE_METADATA_ACCOUNTS
)
CREATE_METADATA_ACCOUNT_V2 = InstructionLayout(
    InstructionKind.CREATE_METADATA_ACCOUNT_V2, _CREATE_METADATA_ACCOUNTS
)
CREATE_METADATA_ACCOUNT_V3 = InstructionLayout(
    InstructionKind.CREATE_METADATA_ACCOUNT_V3, _CREATE_METADATA_ACCOUNTS
)
UPDATE_METADATA_ACCOUNT = InstructionLayout(
    InstructionKind.UPDATE_METADATA_ACCOUNT, _UPDATE_METADATA_ACCOUNTS
)
UPDATE_METADATA_ACCOUNT_V2 = InstructionLayout(
    InstructionKind.UPDATE_METADATA_ACCOUNT_V2, _UPDATE_METADATA_ACCOUNTS
)
UPDATE_PRIMARY_SALE_HAPPENED_VIA_TOKEN = InstructionLayout(
    InstructionKind.UPDATE_PRIMARY_SALE_HAPPENED_VIA_TOKEN,
    (
        AccountSlot("metadata", is_writable=True),
        AccountSlot("owner", is_signer=True),
        AccountSlot("token_account"),
    ),
)
SIGN_METADATA = InstructionLayout(
    InstructionKind.SIGN_METADATA,
    (
        AccountSlot("metadata", is_writable=True),
        AccountSlot("creator", is_signer=True),
    ),
)
# V3 differs from CreateMasterEdition only in taking the metadata account writable.
CREATE_MASTER_EDITION = InstructionLayout(
    InstructionKind.CREATE_MASTER_EDITION, _master_edition_accounts(False)
)
CREATE_MASTER_EDITION_V3 = InstructionLayout(
    InstructionKind.CREATE_MASTER_EDITION_V3, _master_edition_accounts(True)
)
MINT_NEW_EDITION_FROM_MASTER_EDITION_VIA_TOKEN = InstructionLayout(
    InstructionKind.MINT_NEW_EDITION_FROM_MASTER_EDITION_VIA_TOKEN,
    (
        AccountSlot("new_metadata", is_writable=True),
        AccountSlot("new_edition", is_writable=True),
        AccountSlot("master_edition", is_writable=True),
        AccountSlot("new_mint", is_writable=True),
        AccountSlot("edition_mark", is_writable=True),
        AccountSlot("new_mint_authority", is_signer=True),
        AccountSlot("payer", is_signer=True, is_writable=True),
        AccountSlot("token_account_owner", is_signer=True),
        AccountSlot("token_account"),
        AccountSlot("new_metadata_update_authority"),
        AccountSlot("master_metadata"),
        AccountSlot("token_program"),
        AccountSlot("system_program"),
        AccountSlot("rent_sysvar"),
    ),
)
VERIFY_COLLECTION = InstructionLayout(
    InstructionKind.VERIFY_COLLECTION,
    (
        AccountSlot("metadata", is_writable=True),
        AccountSlot("collection_authority", is_signer=True, is_writable=True),
        AccountSlot("payer", is_signer=True, is_writable=True),
        AccountSlot("collection_mint"),
        AccountSlot("collection"),
        AccountSlot("collection_master_edition_account"),
        AccountSlot("collection_authority_record", include=is_supplied),
    ),
)
UNVERIFY_COLLECTION = InstructionLayout(
    InstructionKind.UNVERIFY_COLLECTION,
    (
        AccountSlot("metadata", is_writable=True),
        AccountSlot("collection_authority", is_signer=True, is_writable=True),
        AccountSlot("collection_mint"),
        AccountSlot("collection"),
        AccountSlot("collection_master_edition_account"),
        AccountSlot("collection_authority_record", include=is_supplied),
    ),
)
APPROVE_COLLECTION_AUTHORITY = InstructionLayout(
    InstructionKind.APPROVE_COLLECTION_AUTHORITY,
    (
        AccountSlot("collection_authority_record", is_writable=True),
        AccountSlot("new_collection_authority"),
        AccountSlot("update_authority", is_signer=True, is_writable=True),
        AccountSlot("payer", is_signer=True, is_writable=True),
        AccountSlot("metadata"),
        AccountSlot("mint"),
        AccountSlot("system_program"),
        AccountSlot("rent_sysvar"),
    ),
)
REVOKE_COLLECTION_AUTHORITY = InstructionLayout(
    InstructionKind.REVOKE_COLLECTION_AUTHORITY,
    (
        AccountSlot("collection_authority_record", is_writable=True),
        AccountSlot("delegate_authority", is_writable=True),
        AccountSlot("revoke_authority", is_signer=True, is_writable=True),
        AccountSlot("metadata"),
        AccountSlot("mint"),
    ),
)
SET_AND_VERIFY_COLLECTION = InstructionLayout(
    InstructionKind.SET_AND_VERIFY_COLLECTION,
    (
        AccountSlot("metadata", is_writable=True),
        AccountSlot("collection_authority", is_signer=True, is_writable=True),
        AccountSlot("payer", is_signer=True, is_writable=True),
        AccountSlot("update_authority"),
        AccountSlot("collection_mint"),
        AccountSlot("collection"),
        AccountSlot("collection_master_edition_account"),
        AccountSlot("collection_authority_record", include=is_supplied),
    ),
)
BURN_NFT = InstructionLayout(
    InstructionKind.BURN_NFT,
    (
        AccountSlot("metadata", is_writable=True),
        AccountSlot("owner", is_signer=True, is_writable=True),
        AccountSlot("mint", is_writable=True),
        AccountSlot("token_account", is_writable=True),
        AccountSlot("master_edition_account", is_writable=True),
        AccountSlot("spl_token_program"),
        AccountSlot("collection_metadata", is_writable=True),
    ),
)
VERIFY_SIZED_COLLECTION_ITEM = InstructionLayout(
    InstructionKind.VERIFY_SIZED_COLLECTION_ITEM, _sized_item_accounts(False)
)
UNVERIFY_SIZED_COLLECTION_ITEM = InstructionLayout(
    InstructionKind.UNVERIFY_SIZED_COLLECTION_ITEM, _sized_item_accounts(False)
)
SET_AND_VERIFY_SIZED_COLLECTION_ITEM = InstructionLayout(
    InstructionKind.SET_AND_VERIFY_SIZED_COLLECTION_ITEM, _sized_item_accounts(True)
)
SET_COLLECTION_SIZE = InstructionLayout(
    InstructionKind.SET_COLLECTION_SIZE,
    (
        AccountSlot("collection_metadata", is_writable=True),
        AccountSlot("collection_authority", is_signer=True, is_writable=True),
        AccountSlot("collection_mint"),
        AccountSlot("collection_authority_record", include=is_supplied),
    ),
)


@dataclass(frozen=True)
class ProgramConfig:
    """Addresses a :class:`TokenMetadataProgram` builds instructions against.

    The defaults are the mainnet/devnet deployments. Override ``program_id``
    to target a fork or a locally deployed copy of the program.
    """

    program_id: PublicKey = TOKEN_METADATA_PROGRAM_ID
    system_program: PublicKey = SYSTEM_PROGRAM_ID
    token_program: PublicKey = TOKEN_PROGRAM_ID
    rent_sysvar: PublicKey = SYSVAR_RENT_PUBKEY


class TokenMetadataProgram:
    """Builds token-metadata instructions for one program configuration.

    Instances are immutable and can be shared freely between threads and tasks.
    """

    config: ProgramConfig

    def __init__(self, config: ProgramConfig = ProgramConfig()):
        self.config = config

    @property
    def program_id(self) -> PublicKey:
        return self.config.program_id

    def build(self, layout: InstructionLayout, params: InstructionParams) -> Instruction:
        """Encode ``params`` and resolve accounts according to ``layout``.

        :raises EncodingError: If the payload cannot be serialized.
        """
        ser = Serializer()
        try:
            ser.u8(int(layout.kind))
            params.serialize(ser)
        except EncodingError:
            raise
        except (AttributeError, TypeError, ValueError) as e:
            name = InstructionKind(layout.kind).name
            raise EncodingError(f"Failed to encode {name} payload: {e}") from e

        return Instruction(
            program_id=self.config.program_id,
            accounts=layout.accounts(params, self.config),
            data=ser.output(),
        )

    #
    # Metadata accounts
    #

    def create_metadata_account(self, params: CreateMetadataAccountParams) -> Instruction:
        return self.build(CREATE_METADATA_ACCOUNT, params)

    def create_metadata_account_v2(
        self, params: CreateMetadataAccountV2Params
    ) -> Instruction:
        return self.build(CREATE_METADATA_ACCOUNT_V2, params)

    def create_metadata_account_v3(
        self, params: CreateMetadataAccountV3Params
    ) -> Instruction:
        """Create a metadata account, optionally as a sized collection parent."""
        return self.build(CREATE_METADATA_ACCOUNT_V3, params)

    def update_metadata_account(self, params: UpdateMetadataAccountParams) -> Instruction:
        return self.build(UPDATE_METADATA_ACCOUNT, params)

    def update_metadata_account_v2(
        self, params: UpdateMetadataAccountV2Params
    ) -> Instruction:
        return self.build(UPDATE_METADATA_ACCOUNT_V2, params)

    def update_primary_sale_happened_via_token(
        self, params: UpdatePrimarySaleHappenedViaTokenParams
    ) -> Instruction:
        """Flag the primary sale as done, signed by the holder of the token."""
        return self.build(UPDATE_PRIMARY_SALE_HAPPENED_VIA_TOKEN, params)

    def sign_metadata(self, params: SignMetadataParams) -> Instruction:
        """Mark ``params.creator`` as verified in the creators list."""
        return self.build(SIGN_METADATA, params)

    #
    # Editions
    #

    def create_master_edition(self, params: CreateMasterEditionParams) -> Instruction:
        return self.build(CREATE_MASTER_EDITION, params)

    def create_master_edition_v3(self, params: CreateMasterEditionParams) -> Instruction:
        return self.build(CREATE_MASTER_EDITION_V3, params)

    def mint_new_edition_from_master_edition_via_token(
        self, params: MintNewEditionFromMasterEditionViaTokenParams
    ) -> Instruction:
        """Print edition number ``params.edition`` of a master edition.

        ``edition_mark`` must be the edition marker PDA for that number, see
        :meth:`find_edition_marker_address`.
        """
        return self.build(MINT_NEW_EDITION_FROM_MASTER_EDITION_VIA_TOKEN, params)

    #
    # Collections
    #

    def verify_collection(self, params: VerifyCollectionParams) -> Instruction:
        return self.build(VERIFY_COLLECTION, params)

    def unverify_collection(self, params: UnverifyCollectionParams) -> Instruction:
        return self.build(UNVERIFY_COLLECTION, params)

    def set_and_verify_collection(
        self, params: SetAndVerifyCollectionParams
    ) -> Instruction:
        return self.build(SET_AND_VERIFY_COLLECTION, params)

    def verify_sized_collection_item(
        self, params: VerifyCollectionParams
    ) -> Instruction:
        return self.build(VERIFY_SIZED_COLLECTION_ITEM, params)

    def unverify_sized_collection_item(
        self, params: VerifyCollectionParams
    ) -> Instruction:
        return self.build(UNVERIFY_SIZED_COLLECTION_ITEM, params)

    def set_and_verify_sized_collection_item(
        self, params: SetAndVerifyCollectionParams
    ) -> Instruction:
        return self.build(SET_AND_VERIFY_SIZED_COLLECTION_ITEM, params)

    def approve_collection_authority(
        self, params: ApproveCollectionAuthorityParams
    ) -> Instruction:
        return self.build(APPROVE_COLLECTION_AUTHORITY, params)

    def revoke_collection_authority(
        self, params: RevokeCollectionAuthorityParams
    ) -> Instruction:
        return self.build(REVOKE_COLLECTION_AUTHORITY, params)

    def set_collection_size(self, params: SetCollectionSizeParams) -> Instruction:
        return self.build(SET_COLLECTION_SIZE, params)

    def burn_nft(self, params: BurnNftParams) -> Instruction:
        return self.build(BURN_NFT, params)

    #
    # Program-derived addresses
    #

    def find_metadata_address(self, mint: PublicKey) -> typing.Tuple[PublicKey, int]:
        return PublicKey.find_program_address(
            [METADATA_PREFIX, self.program_id.key, mint.key], self.program_id
        )

    def find_master_edition_address(
        self, mint: PublicKey
    ) -> typing.Tuple[PublicKey, int]:
        return PublicKey.find_program_address(
            [METADATA_PREFIX, self.program_id.key, mint.key, EDITION_SEED],
            self.program_id,
        )

    def find_edition_marker_address(
        self, mint: PublicKey, edition: int
    ) -> typing.Tuple[PublicKey, int]:
        """Marker PDA recording which editions of a master have been printed.

        Each marker covers ``EDITION_MARKER_BIT_SIZE`` consecutive editions.

        Raises:
            ValueError: If ``edition`` is negative.
        """
        if edition < 0:
            raise ValueError(f"Edition number must not be negative, got {edition}")
        marker = str(edition // EDITION_MARKER_BIT_SIZE).encode()
        return PublicKey.find_program_address(
            [METADATA_PREFIX, self.program_id.key, mint.key, EDITION_SEED, marker],
            self.program_id,
        )

    def find_collection_authority_record_address(
        self, mint: PublicKey, authority: PublicKey
    ) -> typing.Tuple[PublicKey, int]:
        return PublicKey.find_program_address(
            [
                METADATA_PREFIX,
                self.program_id.key,
                mint.key,
                COLLECTION_AUTHORITY_SEED,
                authority.key,
            ],
            self.program_id,
        )


DEFAULT_PROGRAM = TokenMetadataProgram()


class Test(unittest.TestCase):
    def setUp(self):
        self.keys = [PublicKey(bytes([i + 1] * 32)) for i in range(16)]
        self.program = TokenMetadataProgram()

    def key(self, index: int) -> PublicKey:
        return self.keys[index]

    def assertAccounts(
        self,
        instruction: Instruction,
        expected: typing.List[typing.Tuple[PublicKey, bool, bool]],
    ):
        self.assertEqual(
            instruction.accounts,
            tuple(AccountMeta(k, s, w) for k, s, w in expected),
        )

    def data(self) -> Data:
        return Data(
            name="N",
            symbol="S",
            uri="U",
            seller_fee_basis_points=500,
            creators=None,
        )

    def data_v2(self) -> DataV2:
        return DataV2(
            name="Fake SMS #1355",
            symbol="FSMB",
            uri="https://example.com/1355.json",
            seller_fee_basis_points=100,
            creators=[
                Creator(self.key(0), verified=True, share=60),
                Creator(self.key(1), verified=False, share=40),
            ],
            collection=Collection(verified=False, key=self.key(2)),
            uses=Uses(UseMethod.MULTIPLE, remaining=3, total=5),
        )

    def test_data_encoding(self):
        self.assertEqual(
            self.data().to_bytes(),
            b"\x01\x00\x00\x00N\x01\x00\x00\x00S\x01\x00\x00\x00U\xf4\x01\x00",
        )

    def test_data_v2_round_trip(self):
        data = self.data_v2()
        self.assertEqual(DataV2.from_bytes(data.to_bytes()), data)

        bare = DataV2("a", "b", "c", 0)
        self.assertEqual(bare.to_bytes()[-3:], b"\x00\x00\x00")
        self.assertEqual(DataV2.from_bytes(bare.to_bytes()), bare)

    def test_create_metadata_account(self):
        params = CreateMetadataAccountParams(
            metadata=self.key(0),
            mint=self.key(1),
            mint_authority=self.key(2),
            payer=self.key(3),
            update_authority=self.key(4),
            update_authority_is_signer=True,
            is_mutable=True,
            data=self.data(),
        )
        instruction = self.program.create_metadata_account(params)

        self.assertEqual(instruction.program_id, TOKEN_METADATA_PROGRAM_ID)
        self.assertEqual(instruction.data, b"\x00" + self.data().to_bytes() + b"\x01")
        self.assertAccounts(
            instruction,
            [
                (self.key(0), False, True),
                (self.key(1), False, False),
                (self.key(2), True, False),
                (self.key(3), True, True),
                (self.key(4), True, False),
                (SYSTEM_PROGRAM_ID, False, False),
                (SYSVAR_RENT_PUBKEY, False, False),
            ],
        )

        params.update_authority_is_signer = False
        instruction = self.program.create_metadata_account(params)
        self.assertEqual(instruction.accounts[4], AccountMeta(self.key(4), False, False))

    def test_create_metadata_account_v2_and_v3(self):
        v2 = CreateMetadataAccountV2Params(
            metadata=self.key(0),
            mint=self.key(1),
            mint_authority=self.key(2),
            payer=self.key(3),
            update_authority=self.key(4),
            update_authority_is_signer=False,
            is_mutable=False,
            data=self.data_v2(),
        )
        instruction = self.program.create_metadata_account_v2(v2)
        self.assertEqual(instruction.data[0], 16)
        self.assertEqual(instruction.data[1:], self.data_v2().to_bytes() + b"\x00")
        self.assertEqual(len(instruction.accounts), 7)

        v3 = CreateMetadataAccountV3Params(
            metadata=self.key(0),
            mint=self.key(1),
            mint_authority=self.key(2),
            payer=self.key(3),
            update_authority=self.key(4),
            update_authority_is_signer=True,
            is_mutable=True,
            data=self.data_v2(),
            collection_details=CollectionDetails(size=10),
        )
        instruction = self.program.create_metadata_account_v3(v3)
        self.assertEqual(instruction.data[0], 33)
        self.assertEqual(
            instruction.data[-10:],
            b"\x01\x00" + (10).to_bytes(8, "little"),
        )
        self.assertEqual(
            [meta.pubkey for meta in instruction.accounts],
            [
                self.key(0),
                self.key(1),
                self.key(2),
                self.key(3),
                self.key(4),
                SYSTEM_PROGRAM_ID,
                SYSVAR_RENT_PUBKEY,
            ],
        )

    def test_update_metadata_account(self):
        instruction = self.program.update_metadata_account(
            UpdateMetadataAccountParams(metadata=self.key(0), update_authority=self.key(1))
        )
        self.assertEqual(instruction.data, b"\x01\x00\x00\x00")
        self.assertAccounts(
            instruction, [(self.key(0), False, True), (self.key(1), True, False)]
        )

        instruction = self.program.update_metadata_account(
            UpdateMetadataAccountParams(
                metadata=self.key(0),
                update_authority=self.key(1),
                data=self.data(),
                new_update_authority=self.key(5),
                primary_sale_happened=True,
            )
        )
        self.assertEqual(
            instruction.data,
            b"\x01\x01"
            + self.data().to_bytes()
            + b"\x01"
            + self.key(5).key
            + b"\x01\x01",
        )

    def test_update_metadata_account_v2(self):
        instruction = self.program.update_metadata_account_v2(
            UpdateMetadataAccountV2Params(
                metadata=self.key(0),
                update_authority=self.key(1),
                primary_sale_happened=False,
                is_mutable=False,
            )
        )
        self.assertEqual(instruction.data, b"\x0f\x00\x00\x01\x00\x01\x00")
        self.assertAccounts(
            instruction, [(self.key(0), False, True), (self.key(1), True, False)]
        )

    def test_update_primary_sale_happened_via_token(self):
        instruction = self.program.update_primary_sale_happened_via_token(
            UpdatePrimarySaleHappenedViaTokenParams(
                metadata=self.key(0), owner=self.key(1), token_account=self.key(2)
            )
        )
        self.assertEqual(instruction.data, b"\x04")
        self.assertAccounts(
            instruction,
            [
                (self.key(0), False, True),
                (self.key(1), True, False),
                (self.key(2), False, False),
            ],
        )

    def test_sign_metadata(self):
        instruction = self.program.sign_metadata(
            SignMetadataParams(metadata=self.key(0), creator=self.key(1))
        )
        self.assertEqual(instruction.data, b"\x07")
        self.assertAccounts(
            instruction, [(self.key(0), False, True), (self.key(1), True, False)]
        )

    def test_create_master_edition(self):
        params = CreateMasterEditionParams(
            edition=self.key(0),
            mint=self.key(1),
            update_authority=self.key(2),
            mint_authority=self.key(3),
            metadata=self.key(4),
            payer=self.key(5),
            max_supply=0,
        )
        expected = [
            (self.key(0), False, True),
            (self.key(1), False, True),
            (self.key(2), True, False),
            (self.key(3), True, False),
            (self.key(5), True, True),
            (self.key(4), False, False),
            (TOKEN_PROGRAM_ID, False, False),
            (SYSTEM_PROGRAM_ID, False, False),
            (SYSVAR_RENT_PUBKEY, False, False),
        ]

        instruction = self.program.create_master_edition(params)
        self.assertEqual(instruction.data, b"\x0a\x01" + bytes(8))
        self.assertAccounts(instruction, expected)

        params.max_supply = None
        instruction = self.program.create_master_edition_v3(params)
        self.assertEqual(instruction.data, b"\x11\x00")
        expected[5] = (self.key(4), False, True)
        self.assertAccounts(instruction, expected)

    def test_mint_new_edition_from_master_edition_via_token(self):
        instruction = self.program.mint_new_edition_from_master_edition_via_token(
            MintNewEditionFromMasterEditionViaTokenParams(
                new_metadata=self.key(0),
                new_edition=self.key(1),
                master_edition=self.key(2),
                new_mint=self.key(3),
                edition_mark=self.key(4),
                new_mint_authority=self.key(5),
                payer=self.key(6),
                token_account_owner=self.key(7),
                token_account=self.key(8),
                new_metadata_update_authority=self.key(9),
                master_metadata=self.key(10),
                edition=1,
            )
        )
        self.assertEqual(instruction.data, b"\x0b" + (1).to_bytes(8, "little"))
        self.assertAccounts(
            instruction,
            [
                (self.key(0), False, True),
                (self.key(1), False, True),
                (self.key(2), False, True),
                (self.key(3), False, True),
                (self.key(4), False, True),
                (self.key(5), True, False),
                (self.key(6), True, True),
                (self.key(7), True, False),
                (self.key(8), False, False),
                (self.key(9), False, False),
                (self.key(10), False, False),
                (TOKEN_PROGRAM_ID, False, False),
                (SYSTEM_PROGRAM_ID, False, False),
                (SYSVAR_RENT_PUBKEY, False, False),
            ],
        )

    def test_verify_collection(self):
        params = VerifyCollectionParams(
            metadata=self.key(0),
            collection_authority=self.key(1),
            payer=self.key(2),
            collection_mint=self.key(3),
            collection=self.key(4),
            collection_master_edition_account=self.key(5),
        )
        expected = [
            (self.key(0), False, True),
            (self.key(1), True, True),
            (self.key(2), True, True),
            (self.key(3), False, False),
            (self.key(4), False, False),
            (self.key(5), False, False),
        ]

        instruction = self.program.verify_collection(params)
        self.assertEqual(instruction.data, b"\x12")
        self.assertAccounts(instruction, expected)

        params.collection_authority_record = self.key(6)
        instruction = self.program.verify_collection(params)
        self.assertAccounts(instruction, expected + [(self.key(6), False, False)])

    def test_unverify_collection(self):
        params = UnverifyCollectionParams(
            metadata=self.key(0),
            collection_authority=self.key(1),
            collection_mint=self.key(2),
            collection=self.key(3),
            collection_master_edition_account=self.key(4),
            collection_authority_record=self.key(5),
        )
        instruction = self.program.unverify_collection(params)
        self.assertEqual(instruction.data, b"\x16")
        self.assertAccounts(
            instruction,
            [
                (self.key(0), False, True),
                (self.key(1), True, True),
                (self.key(2), False, False),
                (self.key(3), False, False),
                (self.key(4), False, False),
                (self.key(5), False, False),
            ],
        )

        params.collection_authority_record = PublicKey.ZERO
        self.assertEqual(len(self.program.unverify_collection(params).accounts), 5)

    def test_set_and_verify_collection(self):
        params = SetAndVerifyCollectionParams(
            metadata=self.key(0),
            collection_authority=self.key(1),
            payer=self.key(2),
            update_authority=self.key(3),
            collection_mint=self.key(4),
            collection=self.key(5),
            collection_master_edition_account=self.key(6),
        )
        expected = [
            (self.key(0), False, True),
            (self.key(1), True, True),
            (self.key(2), True, True),
            (self.key(3), False, False),
            (self.key(4), False, False),
            (self.key(5), False, False),
            (self.key(6), False, False),
        ]

        instruction = self.program.set_and_verify_collection(params)
        self.assertEqual(instruction.data, b"\x19")
        self.assertAccounts(instruction, expected)
        self.assertEqual(SET_AND_VERIFY_COLLECTION.required_len, 7)
        self.assertEqual(SET_AND_VERIFY_COLLECTION.max_len, 8)

        params.collection_authority_record = self.key(7)
        instruction = self.program.set_and_verify_collection(params)
        self.assertAccounts(instruction, expected + [(self.key(7), False, False)])

    def test_sized_collection_items(self):
        params = VerifyCollectionParams(
            metadata=self.key(0),
            collection_authority=self.key(1),
            payer=self.key(2),
            collection_mint=self.key(3),
            collection=self.key(4),
            collection_master_edition_account=self.key(5),
        )
        expected = [
            (self.key(0), False, True),
            (self.key(1), True, True),
            (self.key(2), True, True),
            (self.key(3), False, False),
            (self.key(4), False, True),
            (self.key(5), False, False),
        ]
        verify = self.program.verify_sized_collection_item(params)
        unverify = self.program.unverify_sized_collection_item(params)
        self.assertEqual(verify.data, b"\x1e")
        self.assertEqual(unverify.data, b"\x1f")
        self.assertAccounts(verify, expected)
        self.assertAccounts(unverify, expected)

        set_params = SetAndVerifyCollectionParams(
            metadata=self.key(0),
            collection_authority=self.key(1),
            payer=self.key(2),
            update_authority=self.key(3),
            collection_mint=self.key(4),
            collection=self.key(5),
            collection_master_edition_account=self.key(6),
            collection_authority_record=self.key(7),
        )
        instruction = self.program.set_and_verify_sized_collection_item(set_params)
        self.assertEqual(instruction.data, b"\x20")
        self.assertAccounts(
            instruction,
            [
                (self.key(0), False, True),
                (self.key(1), True, True),
                (self.key(2), True, True),
                (self.key(3), False, False),
                (self.key(4), False, False),
                (self.key(5), False, True),
                (self.key(6), False, False),
                (self.key(7), False, False),
            ],
        )

    def test_collection_authority(self):
        approve = self.program.approve_collection_authority(
            ApproveCollectionAuthorityParams(
                collection_authority_record=self.key(0),
                new_collection_authority=self.key(1),
                update_authority=self.key(2),
                payer=self.key(3),
                metadata=self.key(4),
                mint=self.key(5),
            )
        )
        self.assertEqual(approve.data, b"\x17")
        self.assertAccounts(
            approve,
            [
                (self.key(0), False, True),
                (self.key(1), False, False),
                (self.key(2), True, True),
                (self.key(3), True, True),
                (self.key(4), False, False),
                (self.key(5), False, False),
                (SYSTEM_PROGRAM_ID, False, False),
                (SYSVAR_RENT_PUBKEY, False, False),
            ],
        )

        revoke = self.program.revoke_collection_authority(
            RevokeCollectionAuthorityParams(
                collection_authority_record=self.key(0),
                delegate_authority=self.key(1),
                revoke_authority=self.key(2),
                metadata=self.key(4),
                mint=self.key(5),
            )
        )
        self.assertEqual(revoke.data, b"\x18")
        self.assertAccounts(
            revoke,
            [
                (self.key(0), False, True),
                (self.key(1), False, True),
                (self.key(2), True, True),
                (self.key(4), False, False),
                (self.key(5), False, False),
            ],
        )

    def test_set_collection_size(self):
        params = SetCollectionSizeParams(
            collection_metadata=self.key(0),
            collection_authority=self.key(1),
            collection_mint=self.key(2),
            size=1000,
        )
        instruction = self.program.set_collection_size(params)
        self.assertEqual(instruction.data, b"\x22" + (1000).to_bytes(8, "little"))
        self.assertAccounts(
            instruction,
            [
                (self.key(0), False, True),
                (self.key(1), True, True),
                (self.key(2), False, False),
            ],
        )

        params.collection_authority_record = self.key(3)
        self.assertEqual(len(self.program.set_collection_size(params).accounts), 4)

    def test_burn_nft(self):
        instruction = self.program.burn_nft(
            BurnNftParams(
                metadata=self.key(0),
                owner=self.key(1),
                mint=self.key(2),
                token_account=self.key(3),
                master_edition_account=self.key(4),
                spl_token_program=TOKEN_PROGRAM_ID,
                collection_metadata=self.key(5),
            )
        )
        self.assertEqual(instruction.data, b"\x1d")
        self.assertAccounts(
            instruction,
            [
                (self.key(0), False, True),
                (self.key(1), True, True),
                (self.key(2), False, True),
                (self.key(3), False, True),
                (self.key(4), False, True),
                (TOKEN_PROGRAM_ID, False, False),
                (self.key(5), False, True),
            ],
        )

    def test_encoding_errors(self):
        bad_fee = self.data()
        bad_fee.seller_fee_basis_points = 70000
        params = CreateMetadataAccountParams(
            metadata=self.key(0),
            mint=self.key(1),
            mint_authority=self.key(2),
            payer=self.key(3),
            update_authority=self.key(4),
            update_authority_is_signer=True,
            is_mutable=True,
            data=bad_fee,
        )
        with self.assertRaises(EncodingError):
            self.program.create_metadata_account(params)

        params.data = self.data()
        params.data.name = 42
        with self.assertRaises(EncodingError):
            self.program.create_metadata_account(params)

        params.data = self.data()
        params.data.creators = 5
        with self.assertRaises(EncodingError):
            self.program.create_metadata_account(params)

        with self.assertRaises(EncodingError):
            self.program.update_metadata_account(
                UpdateMetadataAccountParams(
                    metadata=self.key(0),
                    update_authority=self.key(1),
                    new_update_authority="not a key",
                )
            )

        with self.assertRaises(EncodingError):
            self.program.create_master_edition(
                CreateMasterEditionParams(
                    edition=self.key(0),
                    mint=self.key(1),
                    update_authority=self.key(2),
                    mint_authority=self.key(3),
                    metadata=self.key(4),
                    payer=self.key(5),
                    max_supply=-1,
                )
            )

    def test_custom_program_id(self):
        program_id = self.key(15)
        program = TokenMetadataProgram(ProgramConfig(program_id=program_id))
        instruction = program.sign_metadata(
            SignMetadataParams(metadata=self.key(0), creator=self.key(1))
        )
        self.assertEqual(instruction.program_id, program_id)
        self.assertEqual(DEFAULT_PROGRAM.program_id, TOKEN_METADATA_PROGRAM_ID)

    def test_program_addresses(self):
        mint = self.key(0)
        metadata, bump = self.program.find_metadata_address(mint)
        self.assertEqual(
            PublicKey.create_program_address(
                [b"metadata", TOKEN_METADATA_PROGRAM_ID.key, mint.key, bytes([bump])],
                TOKEN_METADATA_PROGRAM_ID,
            ),
            metadata,
        )

        edition, _ = self.program.find_master_edition_address(mint)
        self.assertNotEqual(edition, metadata)
        self.assertFalse(edition.is_on_curve())

        marker_0, _ = self.program.find_edition_marker_address(mint, 1)
        marker_0_again, _ = self.program.find_edition_marker_address(mint, 247)
        marker_1, _ = self.program.find_edition_marker_address(mint, 248)
        self.assertEqual(marker_0, marker_0_again)
        self.assertNotEqual(marker_0, marker_1)
        with self.assertRaises(ValueError):
            self.program.find_edition_marker_address(mint, -1)

        record, _ = self.program.find_collection_authority_record_address(
            mint, self.key(1)
        )
        other, _ = self.program.find_collection_authority_record_address(
            mint, self.key(2)
        )
        self.assertNotEqual(record, other)

    def test_metadata_account(self):
        ser = Serializer()
        ser.u8(Key.METADATA_V1)
        ser.struct(self.key(0))
        ser.struct(self.key(1))
        ser.struct(
            Data(
                name="Degen Ape".ljust(MAX_NAME_LENGTH, "\x00"),
                symbol="DAPE".ljust(MAX_SYMBOL_LENGTH, "\x00"),
                uri="https://example.com/1.json".ljust(MAX_URI_LENGTH, "\x00"),
                seller_fee_basis_points=420,
                creators=[Creator(self.key(2), True, 100)],
            )
        )
        ser.bool(True)
        ser.bool(False)
        ser.option(254, Serializer.u8)
        ser.option(TokenStandard.NON_FUNGIBLE, Serializer.u8)
        ser.option(Collection(True, self.key(3)), Serializer.struct)
        ser.option(None, Serializer.struct)
        ser.option(None, Serializer.struct)
        # Accounts are allocated at a fixed size and zero padded.
        ser.fixed_bytes(bytes(64))

        account = MetadataAccount.from_bytes(ser.output())
        self.assertEqual(account.update_authority, self.key(0))
        self.assertEqual(account.mint, self.key(1))
        self.assertEqual(account.data.name, "Degen Ape")
        self.assertEqual(account.data.symbol, "DAPE")
        self.assertEqual(account.data.uri, "https://example.com/1.json")
        self.assertEqual(account.data.creators, [Creator(self.key(2), True, 100)])
        self.assertTrue(account.primary_sale_happened)
        self.assertFalse(account.is_mutable)
        self.assertEqual(account.edition_nonce, 254)
        self.assertEqual(account.token_standard, TokenStandard.NON_FUNGIBLE)
        self.assertEqual(account.collection, Collection(True, self.key(3)))
        self.assertIsNone(account.uses)
        self.assertIsNone(account.collection_details)
        self.assertEqual(account.to_dict()["collection"]["key"], str(self.key(3)))

    def test_metadata_account_legacy_and_invalid(self):
        ser = Serializer()
        ser.u8(Key.METADATA_V1)
        ser.struct(self.key(0))
        ser.struct(self.key(1))
        ser.struct(self.data())
        ser.bool(False)
        ser.bool(True)

        account = MetadataAccount.from_bytes(ser.output())
        self.assertIsNone(account.edition_nonce)
        self.assertIsNone(account.token_standard)
        self.assertEqual(account.to_dict()["name"], "N")

        with self.assertRaises(DecodingError):
            MetadataAccount.from_bytes(b"\x06" + ser.output()[1:])
        with self.assertRaises(DecodingError):
            MetadataAccount.from_bytes(ser.output()[:40])
