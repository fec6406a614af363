# Copyright © The solana-tokenmeta Authors
# SPDX-License-Identifier: Apache-2.0

"""
Build the token-metadata instructions that turn a fresh mint into an NFT.

Given a mint with supply 1 and a wallet that is both its mint authority and the
payer, the script prints:

1. ``create_metadata_account_v3``: metadata with one verified creator
2. ``create_master_edition_v3``: a one of one master edition (max supply 0)
3. ``sign_metadata``: the creator signs the metadata

It then looks up the metadata account of the mint on the configured endpoint,
which exists once the instructions above have been submitted.

Usage::

    python -m examples.mint_nft_instructions <mint> <wallet>
"""

import asyncio
import json
import sys

from solana_tokenmeta.async_client import ClientConfig, RpcClient
from solana_tokenmeta.public_key import PublicKey
from solana_tokenmeta.token_metadata import (
    DEFAULT_PROGRAM,
    CreateMasterEditionParams,
    CreateMetadataAccountV3Params,
    Creator,
    DataV2,
    MetadataAccount,
    SignMetadataParams,
)

from .common import RPC_API_KEY, RPC_DEBUG, RPC_URL


def build_instructions(mint: PublicKey, wallet: PublicKey):
    metadata, _ = DEFAULT_PROGRAM.find_metadata_address(mint)
    edition, _ = DEFAULT_PROGRAM.find_master_edition_address(mint)

    return [
        DEFAULT_PROGRAM.create_metadata_account_v3(
            CreateMetadataAccountV3Params(
                metadata=metadata,
                mint=mint,
                mint_authority=wallet,
                payer=wallet,
                update_authority=wallet,
                update_authority_is_signer=True,
                is_mutable=True,
                data=DataV2(
                    name="Python NFT #1",
                    symbol="PYNFT",
                    uri="https://example.com/nft/1.json",
                    seller_fee_basis_points=500,
                    creators=[Creator(wallet, verified=False, share=100)],
                ),
            )
        ),
        DEFAULT_PROGRAM.create_master_edition_v3(
            CreateMasterEditionParams(
                edition=edition,
                mint=mint,
                update_authority=wallet,
                mint_authority=wallet,
                metadata=metadata,
                payer=wallet,
                max_supply=0,
            )
        ),
        DEFAULT_PROGRAM.sign_metadata(
            SignMetadataParams(metadata=metadata, creator=wallet)
        ),
    ]


async def main(mint: PublicKey, wallet: PublicKey):
    for instruction in build_instructions(mint, wallet):
        print(instruction)

    client = RpcClient(RPC_URL, ClientConfig(debug=RPC_DEBUG, api_key=RPC_API_KEY))
    try:
        metadata, _ = DEFAULT_PROGRAM.find_metadata_address(mint)
        data = await client.get_account_data(metadata)
    finally:
        await client.close()

    if data is None:
        print(f"\n=== No metadata account yet for {mint} ===")
        return
    print("\n=== Metadata account ===")
    print(json.dumps(MetadataAccount.from_bytes(data).to_dict(), indent=2))


if __name__ == "__main__":
    assert len(sys.argv) == 3, "Expecting the mint and the wallet public keys"
    asyncio.run(
        main(PublicKey.from_str(sys.argv[1]), PublicKey.from_str(sys.argv[2]))
    )
