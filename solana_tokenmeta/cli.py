# Copyright © The solana-tokenmeta Authors
# SPDX-License-Identifier: Apache-2.0

"""
Command-line interface for the solana-tokenmeta SDK.

Supported Commands:
- rpc: Send one JSON-RPC request and print its result
- pda: Derive a token-metadata program address
- metadata: Fetch and decode the metadata account of a mint

Examples:
    Raw RPC request; parameters are JSON literals, bare words are strings::

        python -m solana_tokenmeta.cli rpc getBalance \
            4Nd1mBQtrMJVYVfKf2PJy9NZUZdTAsp7D4xWLs4gDB4T \
            '{"commitment": "finalized"}'

    Metadata PDA of a mint::

        python -m solana_tokenmeta.cli pda metadata --mint 7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU

    Decoded metadata account from devnet::

        python -m solana_tokenmeta.cli metadata --mint 7xKX... --endpoint devnet

Environment Variables:
    SOLANA_RPC_URL: Default endpoint (URL or cluster name), mainnet otherwise
    SOLANA_RPC_DEBUG: Any non-empty value enables debug dumps of failed calls
"""

from __future__ import annotations

import argparse
import asyncio
import base64
import json
import logging
import os
import sys
import unittest
from typing import Any, List, Optional, Tuple
from unittest.mock import patch

import httpx

from .async_client import (
    MAINNET_RPC_ENDPOINT,
    ClientConfig,
    RpcClient,
    RpcClientError,
)
from .borsh import BorshError, Serializer
from .public_key import ParsePublicKeyError, PublicKey
from .token_metadata import (
    DEFAULT_PROGRAM,
    Data,
    Key,
    MetadataAccount,
    TokenMetadataProgram,
)

PDA_KINDS = ["metadata", "edition", "edition-marker", "collection-authority-record"]


def parse_param(indata: str) -> Any:
    """Parse a command-line RPC parameter as JSON, falling back to a string."""
    try:
        return json.loads(indata)
    except ValueError:
        return indata


def public_key(indata: str) -> PublicKey:
    try:
        return PublicKey.from_str(indata)
    except ParsePublicKeyError as e:
        raise argparse.ArgumentTypeError(str(e))


def make_client(endpoint: str, debug: bool) -> RpcClient:
    return RpcClient(endpoint, ClientConfig(debug=debug))


def derive_address(
    kind: str,
    mint: PublicKey,
    authority: Optional[PublicKey] = None,
    edition: Optional[int] = None,
    program: TokenMetadataProgram = DEFAULT_PROGRAM,
) -> Tuple[PublicKey, int]:
    """Derive one of the program addresses listed in ``PDA_KINDS``.

    Raises:
        ValueError: If the kind is unknown or a required input is missing.
    """
    if kind == "metadata":
        return program.find_metadata_address(mint)
    if kind == "edition":
        return program.find_master_edition_address(mint)
    if kind == "edition-marker":
        if edition is None:
            raise ValueError("edition-marker requires an edition number")
        if edition < 0:
            raise ValueError(f"edition must not be negative, got {edition}")
        return program.find_edition_marker_address(mint, edition)
    if kind == "collection-authority-record":
        if authority is None:
            raise ValueError("collection-authority-record requires an authority")
        return program.find_collection_authority_record_address(mint, authority)
    raise ValueError(f"Unknown address kind: {kind}")


async def rpc_call(client: RpcClient, method: str, params: List[Any]) -> Any:
    return await client.request(method, *params)


async def fetch_metadata(client: RpcClient, mint: PublicKey) -> Optional[MetadataAccount]:
    """Fetch and decode the metadata account of ``mint``; ``None`` if absent."""
    address, _ = DEFAULT_PROGRAM.find_metadata_address(mint)
    data = await client.get_account_data(address)
    if data is None:
        return None
    return MetadataAccount.from_bytes(data)


async def main(args: List[str]):
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--endpoint",
        help="RPC endpoint URL or cluster name (localnet, devnet, testnet, mainnet)",
        default=os.getenv("SOLANA_RPC_URL", MAINNET_RPC_ENDPOINT),
    )
    common.add_argument(
        "--debug",
        help="Log every request and dump failed exchanges",
        action="store_true",
        default=bool(os.getenv("SOLANA_RPC_DEBUG")),
    )
    parser = argparse.ArgumentParser(description="Solana token-metadata CLI")
    commands = parser.add_subparsers(dest="command", required=True)

    rpc_parser = commands.add_parser(
        "rpc", parents=[common], help="Send one JSON-RPC request"
    )
    rpc_parser.add_argument("method", help="RPC method name, e.g. getSlot")
    rpc_parser.add_argument(
        "params", nargs="*", type=parse_param, help="Parameters as JSON literals"
    )

    pda_parser = commands.add_parser(
        "pda", parents=[common], help="Derive a program address"
    )
    pda_parser.add_argument("kind", choices=PDA_KINDS)
    pda_parser.add_argument("--mint", type=public_key, required=True)
    pda_parser.add_argument("--authority", type=public_key)
    pda_parser.add_argument("--edition", type=int)

    metadata_parser = commands.add_parser(
        "metadata",
        parents=[common],
        help="Fetch and decode the metadata account of a mint",
    )
    metadata_parser.add_argument("--mint", type=public_key, required=True)

    parsed_args = parser.parse_args(args)
    logging.basicConfig(
        level=logging.DEBUG if parsed_args.debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if parsed_args.command == "pda":
        try:
            address, bump = derive_address(
                parsed_args.kind,
                parsed_args.mint,
                parsed_args.authority,
                parsed_args.edition,
            )
        except ValueError as e:
            parser.error(str(e))
        print(f"{address} {bump}")
        return

    client = make_client(parsed_args.endpoint, parsed_args.debug)
    try:
        if parsed_args.command == "rpc":
            result = await rpc_call(client, parsed_args.method, parsed_args.params)
            print(json.dumps(result, indent=2))
        elif parsed_args.command == "metadata":
            account = await fetch_metadata(client, parsed_args.mint)
            if account is None:
                logging.error("No metadata account for mint %s", parsed_args.mint)
                sys.exit(1)
            print(json.dumps(account.to_dict(), indent=2))
    except (RpcClientError, BorshError) as e:
        logging.error(e, exc_info=parsed_args.debug)
        sys.exit(1)
    finally:
        await client.close()


def run():
    asyncio.run(main(sys.argv[1:]))


class Test(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.mint = PublicKey(bytes([7] * 32))

    def mock_client(self, handler):
        def factory(endpoint: str, debug: bool) -> RpcClient:
            transport = httpx.MockTransport(handler)
            return RpcClient(endpoint, ClientConfig(debug=debug, transport=transport))

        return patch(f"{__name__}.make_client", side_effect=factory)

    def test_parse_param(self):
        self.assertEqual(parse_param("42"), 42)
        self.assertEqual(parse_param('{"commitment": "finalized"}'), {"commitment": "finalized"})
        self.assertEqual(parse_param("abc"), "abc")

    def test_derive_address(self):
        self.assertEqual(
            derive_address("metadata", self.mint),
            DEFAULT_PROGRAM.find_metadata_address(self.mint),
        )
        self.assertEqual(
            derive_address("edition-marker", self.mint, edition=300),
            DEFAULT_PROGRAM.find_edition_marker_address(self.mint, 300),
        )
        with self.assertRaises(ValueError):
            derive_address("edition-marker", self.mint)
        with self.assertRaises(ValueError):
            derive_address("collection-authority-record", self.mint)
        with self.assertRaises(ValueError):
            derive_address("edition-marker", self.mint, edition=-1)

    async def test_pda_command(self):
        with patch("builtins.print") as mock_print:
            await main(["pda", "edition", "--mint", str(self.mint)])
        address, bump = DEFAULT_PROGRAM.find_master_edition_address(self.mint)
        mock_print.assert_called_once_with(f"{address} {bump}")

    async def test_pda_command_rejects_negative_edition(self):
        with patch("sys.stderr"), self.assertRaises(SystemExit) as cm:
            await main(
                ["pda", "edition-marker", "--mint", str(self.mint), "--edition", "-1"]
            )
        self.assertEqual(cm.exception.code, 2)

    async def test_rpc_command(self):
        def handler(request: httpx.Request) -> httpx.Response:
            payload = json.loads(request.content)
            self.assertEqual(payload["method"], "getSlot")
            self.assertEqual(payload["params"], [{"commitment": "finalized"}])
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": 99})

        with self.mock_client(handler), patch("builtins.print") as mock_print:
            await main(["rpc", "getSlot", '{"commitment": "finalized"}'])
        mock_print.assert_called_once_with("99")

    async def test_rpc_command_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, content=b"unavailable")

        with self.mock_client(handler), self.assertRaises(SystemExit):
            await main(["rpc", "getHealth"])

    async def test_metadata_command(self):
        ser = Serializer()
        ser.u8(Key.METADATA_V1)
        ser.struct(PublicKey(bytes([1] * 32)))
        ser.struct(self.mint)
        ser.struct(Data("Degen Ape", "DAPE", "https://example.com/1.json", 420))
        ser.bool(False)
        ser.bool(True)
        encoded = base64.b64encode(ser.output()).decode()

        def handler(request: httpx.Request) -> httpx.Response:
            payload = json.loads(request.content)
            self.assertEqual(payload["method"], "getAccountInfo")
            value = {"data": [encoded, "base64"], "owner": str(DEFAULT_PROGRAM.program_id)}
            return httpx.Response(
                200,
                json={"jsonrpc": "2.0", "id": 1, "result": {"context": {"slot": 1}, "value": value}},
            )

        with self.mock_client(handler), patch("builtins.print") as mock_print:
            await main(["metadata", "--mint", str(self.mint)])
        printed = json.loads(mock_print.call_args[0][0])
        self.assertEqual(printed["name"], "Degen Ape")
        self.assertEqual(printed["mint"], str(self.mint))
        self.assertIsNone(printed["token_standard"])


if __name__ == "__main__":
    run()
