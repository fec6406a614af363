# Copyright © The solana-tokenmeta Authors
# SPDX-License-Identifier: Apache-2.0

"""
solana-tokenmeta - Python bindings for the Solana token-metadata program.

The package builds instructions for the Metaplex token-metadata program, the
on-chain program that attaches names, symbols, URIs, royalties, creators and
collection membership to SPL token mints, and talks to Solana nodes over
JSON-RPC.

Core Features:
- **Instruction Builders**: Create and update metadata, master editions and
  prints, verify collections, burn NFTs
- **Borsh Serialization**: The binary format every payload and account uses
- **Public Keys**: base58 parsing and program-derived address derivation
- **Account Decoding**: On-chain metadata accounts into typed objects
- **RPC Client**: Async JSON-RPC 2.0 client on httpx with HTTP/2 support
- **CLI**: ``solana-tokenmeta rpc|pda|metadata``

Modules:
    borsh: Serializer, Deserializer and the encoding error types
    public_key: PublicKey and program-derived addresses
    instruction: AccountMeta, Instruction and declarative account layouts
    token_metadata: Payload types, builders and PDA helpers
    async_client: RpcClient, ClientConfig and the RPC error hierarchy
    metadata: Client identification header
    cli: Command-line entry point

Quick Start:
    Building an instruction and reading an account::

        import asyncio
        from solana_tokenmeta.async_client import RpcClient
        from solana_tokenmeta.public_key import PublicKey
        from solana_tokenmeta.token_metadata import (
            DEFAULT_PROGRAM,
            MetadataAccount,
            SignMetadataParams,
        )

        async def main():
            mint = PublicKey.from_str("7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU")
            metadata, _ = DEFAULT_PROGRAM.find_metadata_address(mint)

            instruction = DEFAULT_PROGRAM.sign_metadata(
                SignMetadataParams(metadata=metadata, creator=creator)
            )

            client = RpcClient("devnet")
            data = await client.get_account_data(metadata)
            print(MetadataAccount.from_bytes(data).data.name)
            await client.close()

        asyncio.run(main())

Note:
    Builders produce unsigned instructions. Assembling, signing and sending the
    transaction is left to the caller.
"""
