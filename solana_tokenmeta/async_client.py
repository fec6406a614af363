# Copyright © The solana-tokenmeta Authors
# SPDX-License-Identifier: Apache-2.0

"""
Asynchronous JSON-RPC client for Solana nodes.

This module provides a minimal client for the JSON-RPC 2.0 HTTP API exposed by
Solana validators and RPC providers. A request is a single POST of
``{"jsonrpc": "2.0", "id": 1, "method": ..., "params": [...]}``; the raw response
body is handed back to the caller, who either keeps it or lets the client decode
the response envelope.

Key Features:
- **RpcClient**: one ``httpx.AsyncClient`` per instance, HTTP/2 by default
- **Raw calls**: :meth:`RpcClient.call` returns the response body untouched
- **Decoded calls**: :meth:`RpcClient.request` returns the ``result`` member
  and raises :class:`RpcError` for an error envelope
- **Convenience methods**: a handful of common read and submit methods
- **Debug dumps**: with ``ClientConfig.debug`` set, failed exchanges are
  logged in full

Error Handling:
    Every failure derives from :class:`RpcClientError`:

    - PayloadError: The parameters cannot be encoded as JSON
    - TransportError: The request never produced an HTTP response
    - ApiError: The node answered with a non-2xx status; the body is kept
    - ResponseDecodeError: The body is not a JSON-RPC response object
    - RpcError: The node answered with a JSON-RPC error envelope

    Nothing is retried; every failure propagates to the caller.

Examples:
    Querying a node::

        from solana_tokenmeta.async_client import Commitment, RpcClient, DEVNET_RPC_ENDPOINT

        client = RpcClient(DEVNET_RPC_ENDPOINT)
        slot = await client.get_slot(Commitment.FINALIZED)
        body = await client.call("getHealth")   # b'{"jsonrpc":"2.0","result":"ok","id":1}'
        await client.close()

    Bounding a call from the caller's side::

        result = await asyncio.wait_for(client.request("getVersion"), timeout=5)

Note:
    All client operations are async and must be awaited. The client does not
    retry, pool across instances or cache; timeouts come from
    ``ClientConfig.timeout`` or the caller's own cancellation.
"""

import asyncio
import base64
import json
import logging
import unittest
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Union

import httpx

from .metadata import Metadata

logger = logging.getLogger(__name__)

LOCALNET_RPC_ENDPOINT = "http://localhost:8899"
DEVNET_RPC_ENDPOINT = "https://api.devnet.solana.com"
TESTNET_RPC_ENDPOINT = "https://api.testnet.solana.com"
MAINNET_RPC_ENDPOINT = "https://api.mainnet-beta.solana.com"

ENDPOINTS = {
    "localnet": LOCALNET_RPC_ENDPOINT,
    "devnet": DEVNET_RPC_ENDPOINT,
    "testnet": TESTNET_RPC_ENDPOINT,
    "mainnet": MAINNET_RPC_ENDPOINT,
}

JSONRPC_VERSION = "2.0"
REQUEST_ID = 1


def endpoint_for(name_or_url: str) -> str:
    """Map a cluster name to its public endpoint; URLs pass through unchanged."""
    return ENDPOINTS.get(name_or_url, name_or_url)


class Commitment(str, Enum):
    """How finalized a block is when the node answers."""

    FINALIZED = "finalized"
    CONFIRMED = "confirmed"
    PROCESSED = "processed"


@dataclass
class ClientConfig:
    """Configuration parameters for :class:`RpcClient`.

    Attributes:
        debug: Log the full request and response of failed calls at INFO.
        http2: Negotiate HTTP/2 with the node.
        timeout: Connect, read and write timeout in seconds. There is no pool
            timeout, concurrent calls wait for a free connection.
        api_key: Sent as a bearer token for providers that require one.
        transport: Replaces the network transport, e.g. ``httpx.MockTransport``
            in tests.
    """

    debug: bool = False
    http2: bool = True
    timeout: float = 60.0
    api_key: Optional[str] = None
    transport: Optional[httpx.AsyncBaseTransport] = None


@dataclass
class ErrorResponse:
    code: int
    message: str
    data: Optional[Any] = None


@dataclass
class JsonRpcResponse:
    """A decoded JSON-RPC response envelope."""

    jsonrpc: str
    id: Optional[int]
    result: Any = None
    error: Optional[ErrorResponse] = None

    @staticmethod
    def parse(body: bytes) -> "JsonRpcResponse":
        """Decode a response body.

        :raises ResponseDecodeError: If the body is not JSON, not an object, or
            carries a malformed ``error`` member.
        """
        try:
            envelope = json.loads(body)
        except ValueError as e:
            raise ResponseDecodeError(f"Failed to decode response body: {e}", body) from e
        if not isinstance(envelope, dict):
            raise ResponseDecodeError("Response is not a JSON object", body)

        error = None
        raw_error = envelope.get("error")
        if raw_error is not None:
            if (
                not isinstance(raw_error, dict)
                or not isinstance(raw_error.get("code"), int)
                or not isinstance(raw_error.get("message"), str)
            ):
                raise ResponseDecodeError(f"Malformed error member: {raw_error}", body)
            error = ErrorResponse(
                code=raw_error["code"],
                message=raw_error["message"],
                data=raw_error.get("data"),
            )

        return JsonRpcResponse(
            jsonrpc=envelope.get("jsonrpc", ""),
            id=envelope.get("id"),
            result=envelope.get("result"),
            error=error,
        )


def prepare_payload(method: str, params: Union[List[Any], tuple] = ()) -> bytes:
    """Encode a JSON-RPC request; ``params`` is left out when empty.

    :raises PayloadError: If the method is not a non-empty string or a
        parameter cannot be encoded as JSON.
    """
    if not isinstance(method, str) or not method:
        raise PayloadError(f"Invalid method name: {method!r}")

    request: Dict[str, Any] = {
        "jsonrpc": JSONRPC_VERSION,
        "id": REQUEST_ID,
        "method": method,
    }
    if params:
        request["params"] = list(params)
    try:
        return json.dumps(request, separators=(",", ":")).encode()
    except (TypeError, ValueError) as e:
        raise PayloadError(f"Failed to encode parameters of {method}: {e}") from e


def process_rpc_call(body: bytes) -> Any:
    """Return the ``result`` of a response body.

    :raises ResponseDecodeError: If the body cannot be decoded.
    :raises RpcError: If the node answered with an error envelope.
    """
    response = JsonRpcResponse.parse(body)
    if response.error is not None:
        raise RpcError(
            response.error.message, response.error.code, response.error.data
        )
    return response.result


def _with_config(params: List[Any], config: Dict[str, Any]) -> List[Any]:
    config = {key: val for key, val in config.items() if val is not None}
    if config:
        params.append(config)
    return params


def _context_value(method: str, result: Any) -> Any:
    """The ``value`` member of a result wrapped in an RPC response context."""
    if not isinstance(result, dict) or "value" not in result:
        raise ResponseDecodeError(f"{method} result has no value: {result!r}", b"")
    return result["value"]


def _commitment(commitment: Optional[Union[Commitment, str]]) -> Optional[str]:
    if commitment is None:
        return None
    return Commitment(commitment).value


class RpcClient:
    """Client for a single Solana JSON-RPC endpoint.

    Concurrent calls from many tasks are independent and share one connection
    pool. Call :meth:`close` when done.
    """

    client: httpx.AsyncClient
    client_config: ClientConfig
    endpoint: str

    def __init__(
        self,
        endpoint: str = MAINNET_RPC_ENDPOINT,
        client_config: ClientConfig = ClientConfig(),
    ):
        """Initialize the client.

        Args:
            endpoint: URL of the node, or one of ``localnet``, ``devnet``,
                ``testnet`` and ``mainnet``.
            client_config: Networking and debugging options.

        Examples:
            Local validator::

                client = RpcClient("localnet")

            Provider requiring an API key::

                client = RpcClient(
                    "https://rpc.example.com", ClientConfig(api_key="your-api-key")
                )
        """
        self.endpoint = endpoint_for(endpoint)
        # Do not set a pool timeout, calls wait as long as progress is being made.
        timeout = httpx.Timeout(client_config.timeout, pool=None)
        headers = {
            "Content-Type": "application/json",
            Metadata.CLIENT_HEADER: Metadata.get_client_header_val(),
        }
        if client_config.api_key:
            headers["Authorization"] = f"Bearer {client_config.api_key}"
        self.client = httpx.AsyncClient(
            http2=client_config.http2,
            timeout=timeout,
            headers=headers,
            transport=client_config.transport,
        )
        self.client_config = client_config

    async def close(self):
        await self.client.aclose()

    async def call(self, method: str, *params: Any) -> bytes:
        """Send one request and return the raw response body.

        :raises PayloadError: If the request cannot be encoded.
        :raises TransportError: If no HTTP response was received, including
            when the endpoint is not a valid URL.
        :raises ApiError: If the status is not 2xx. The body is kept on the error.
        """
        payload = prepare_payload(method, params)
        try:
            request = self.client.build_request("POST", self.endpoint, content=payload)
        except (httpx.InvalidURL, ValueError) as e:
            raise TransportError(f"Failed to build request {method}: {e}") from e
        logger.debug("rpc %s -> %s", method, self.endpoint)

        try:
            response = await self.client.send(request)
        except httpx.HTTPError as e:
            if self.client_config.debug:
                self._dump(request, None)
            raise TransportError(f"Failed to do request {method}: {e}") from e

        body = response.content
        logger.debug("rpc %s <- %s (%d bytes)", method, response.status_code, len(body))
        if not 200 <= response.status_code < 300:
            if self.client_config.debug:
                self._dump(request, response)
            raise ApiError(
                f"{method} returned status code {response.status_code}",
                response.status_code,
                body,
            )
        return body

    async def request(self, method: str, *params: Any) -> Any:
        """Send one request and return its decoded ``result``.

        :raises RpcError: If the node answered with an error envelope.
        """
        body = await self.call(method, *params)
        try:
            return process_rpc_call(body)
        except ResponseDecodeError:
            if self.client_config.debug:
                logger.info("response of %s could not be decoded: %r", method, body)
            raise

    def _dump(self, request: httpx.Request, response: Optional[httpx.Response]):
        headers = "\n".join(f"{k}: {v}" for k, v in request.headers.items())
        logger.info(
            "request\n%s %s\n%s\n\n%s",
            request.method,
            request.url,
            headers,
            request.content.decode(errors="replace"),
        )
        if response is None:
            logger.info("response <none>")
            return
        headers = "\n".join(f"{k}: {v}" for k, v in response.headers.items())
        logger.info(
            "response\n%s %s\n%s\n\n%s",
            response.http_version,
            response.status_code,
            headers,
            response.content.decode(errors="replace"),
        )

    #
    # Convenience methods
    #

    async def get_version(self) -> Dict[str, Any]:
        return await self.request("getVersion")

    async def get_health(self) -> str:
        return await self.request("getHealth")

    async def get_slot(
        self, commitment: Optional[Union[Commitment, str]] = None
    ) -> int:
        params = _with_config([], {"commitment": _commitment(commitment)})
        return await self.request("getSlot", *params)

    async def get_balance(
        self, account: Any, commitment: Optional[Union[Commitment, str]] = None
    ) -> int:
        """Balance in lamports of ``account`` (a public key or its base58 text)."""
        params = _with_config([str(account)], {"commitment": _commitment(commitment)})
        result = await self.request("getBalance", *params)
        return _context_value("getBalance", result)

    async def get_account_info(
        self,
        account: Any,
        commitment: Optional[Union[Commitment, str]] = None,
        encoding: str = "base64",
    ) -> Optional[Dict[str, Any]]:
        """The account's info, or ``None`` if it does not exist."""
        params = _with_config(
            [str(account)],
            {"encoding": encoding, "commitment": _commitment(commitment)},
        )
        result = await self.request("getAccountInfo", *params)
        return _context_value("getAccountInfo", result)

    async def get_account_data(
        self, account: Any, commitment: Optional[Union[Commitment, str]] = None
    ) -> Optional[bytes]:
        """Raw data of an account, or ``None`` if it does not exist."""
        info = await self.get_account_info(account, commitment)
        if info is None:
            return None
        try:
            data, encoding = info["data"]
        except (KeyError, TypeError, ValueError) as e:
            raise ResponseDecodeError(f"Malformed account info: {info!r}", b"") from e
        if encoding != "base64":
            raise ResponseDecodeError(f"Unexpected account encoding {encoding}", b"")
        try:
            return base64.b64decode(data, validate=True)
        except (TypeError, ValueError) as e:
            raise ResponseDecodeError(f"Invalid base64 account data: {e}", b"") from e

    async def get_latest_blockhash(
        self, commitment: Optional[Union[Commitment, str]] = None
    ) -> Dict[str, Any]:
        params = _with_config([], {"commitment": _commitment(commitment)})
        result = await self.request("getLatestBlockhash", *params)
        return _context_value("getLatestBlockhash", result)

    async def get_minimum_balance_for_rent_exemption(
        self, data_length: int, commitment: Optional[Union[Commitment, str]] = None
    ) -> int:
        params = _with_config([data_length], {"commitment": _commitment(commitment)})
        return await self.request("getMinimumBalanceForRentExemption", *params)

    async def send_transaction(
        self,
        transaction: bytes,
        skip_preflight: bool = False,
        preflight_commitment: Optional[Union[Commitment, str]] = None,
    ) -> str:
        """Submit a signed, serialized transaction and return its signature."""
        params = _with_config(
            [base64.b64encode(transaction).decode()],
            {
                "encoding": "base64",
                "skipPreflight": skip_preflight,
                "preflightCommitment": _commitment(preflight_commitment),
            },
        )
        return await self.request("sendTransaction", *params)

    async def get_signature_statuses(
        self, signatures: List[str], search_transaction_history: bool = False
    ) -> List[Optional[Dict[str, Any]]]:
        params = _with_config(
            [list(signatures)],
            {"searchTransactionHistory": search_transaction_history or None},
        )
        result = await self.request("getSignatureStatuses", *params)
        return _context_value("getSignatureStatuses", result)


class RpcClientError(Exception):
    """Base class of every error raised by :class:`RpcClient`."""


class PayloadError(RpcClientError):
    """The request could not be encoded."""


class TransportError(RpcClientError):
    """The request failed before an HTTP response was received."""


class ApiError(RpcClientError):
    """The node returned a non-success status code, e.g., >= 400"""

    status_code: int
    body: bytes

    def __init__(self, message: str, status_code: int, body: bytes = b""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ResponseDecodeError(RpcClientError):
    """The response body is not a JSON-RPC response object."""

    body: bytes

    def __init__(self, message: str, body: bytes):
        super().__init__(message)
        self.body = body


class RpcError(RpcClientError):
    """The node answered with a JSON-RPC error envelope."""

    code: int
    data: Optional[Any]

    def __init__(self, message: str, code: int, data: Optional[Any] = None):
        super().__init__(f"{code}: {message}")
        self.message = message
        self.code = code
        self.data = data


class Test(unittest.IsolatedAsyncioTestCase):
    def client(self, handler, **kwargs) -> RpcClient:
        config = ClientConfig(transport=httpx.MockTransport(handler), **kwargs)
        return RpcClient(LOCALNET_RPC_ENDPOINT, config)

    async def asyncTearDown(self):
        if hasattr(self, "rpc"):
            await self.rpc.close()

    def test_endpoint_for(self):
        self.assertEqual(endpoint_for("devnet"), DEVNET_RPC_ENDPOINT)
        self.assertEqual(endpoint_for("mainnet"), MAINNET_RPC_ENDPOINT)
        self.assertEqual(endpoint_for("http://node:8899"), "http://node:8899")

    def test_prepare_payload(self):
        self.assertEqual(
            prepare_payload("getHealth"),
            b'{"jsonrpc":"2.0","id":1,"method":"getHealth"}',
        )
        self.assertEqual(
            json.loads(prepare_payload("getBalance", ["abc", {"commitment": "finalized"}])),
            {
                "jsonrpc": "2.0",
                "id": 1,
                "method": "getBalance",
                "params": ["abc", {"commitment": "finalized"}],
            },
        )
        with self.assertRaises(PayloadError):
            prepare_payload("getBalance", [object()])
        with self.assertRaises(PayloadError):
            prepare_payload("")

    def test_parse(self):
        response = JsonRpcResponse.parse(b'{"jsonrpc":"2.0","id":1,"result":42}')
        self.assertEqual(response.result, 42)
        self.assertIsNone(response.error)

        response = JsonRpcResponse.parse(
            b'{"jsonrpc":"2.0","id":1,"error":{"code":-32601,"message":"Method not found"}}'
        )
        self.assertEqual(response.error, ErrorResponse(-32601, "Method not found"))

        with self.assertRaises(ResponseDecodeError):
            JsonRpcResponse.parse(b"not json")
        with self.assertRaises(ResponseDecodeError):
            JsonRpcResponse.parse(b"[1, 2]")
        with self.assertRaises(ResponseDecodeError):
            JsonRpcResponse.parse(b'{"error": "oops"}')

    async def test_call_success(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=b'{"jsonrpc":"2.0","result":"ok","id":1}')

        self.rpc = self.client(handler)
        body = await self.rpc.call("getHealth")

        self.assertEqual(body, b'{"jsonrpc":"2.0","result":"ok","id":1}')
        self.assertEqual(seen[0].method, "POST")
        self.assertEqual(str(seen[0].url), LOCALNET_RPC_ENDPOINT)
        self.assertEqual(seen[0].headers["content-type"], "application/json")
        self.assertIn(Metadata.CLIENT_HEADER, seen[0].headers)
        self.assertEqual(
            json.loads(seen[0].content),
            {"jsonrpc": "2.0", "id": 1, "method": "getHealth"},
        )

    async def test_api_error_keeps_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, content=b"not found")

        self.rpc = self.client(handler, debug=True)
        with self.assertLogs(__name__, level="INFO") as logs:
            with self.assertRaises(ApiError) as cm:
                await self.rpc.call("getSlot")

        self.assertEqual(cm.exception.status_code, 404)
        self.assertEqual(cm.exception.body, b"not found")
        self.assertTrue(any("getSlot" in line for line in logs.output))

    async def test_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        self.rpc = self.client(handler)
        with self.assertRaises(TransportError) as cm:
            await self.rpc.call("getSlot")
        self.assertIsInstance(cm.exception.__cause__, httpx.ConnectError)

    async def test_malformed_json(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"{not json")

        self.rpc = self.client(handler)
        with self.assertRaises(ResponseDecodeError):
            await self.rpc.request("getSlot")

    async def test_error_envelope(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "jsonrpc": "2.0",
                    "id": 1,
                    "error": {
                        "code": -32602,
                        "message": "Invalid param",
                        "data": {"reason": "bad key"},
                    },
                },
            )

        self.rpc = self.client(handler)
        with self.assertRaises(RpcError) as cm:
            await self.rpc.get_balance("abc")
        self.assertEqual(cm.exception.code, -32602)
        self.assertEqual(cm.exception.message, "Invalid param")
        self.assertEqual(cm.exception.data, {"reason": "bad key"})

    async def test_convenience_methods(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            payload = json.loads(request.content)
            requests.append(payload)
            results = {
                "getSlot": 1234,
                "getBalance": {"context": {"slot": 1}, "value": 5000},
                "getAccountInfo": {
                    "context": {"slot": 1},
                    "value": {
                        "data": [base64.b64encode(b"\x04abc").decode(), "base64"],
                        "owner": "metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s",
                    },
                },
                "sendTransaction": "5VERv8NMvzbJMEkV8xnrLkEaWRtSz9CosKDYjCJjBRnb",
            }
            return httpx.Response(
                200,
                json={"jsonrpc": "2.0", "id": 1, "result": results[payload["method"]]},
            )

        self.rpc = self.client(handler)
        self.assertEqual(await self.rpc.get_slot(Commitment.CONFIRMED), 1234)
        self.assertEqual(await self.rpc.get_balance("abc", "finalized"), 5000)
        self.assertEqual(await self.rpc.get_account_data("abc"), b"\x04abc")
        signature = await self.rpc.send_transaction(b"\x01\x02", skip_preflight=True)
        self.assertTrue(signature.startswith("5VER"))

        self.assertEqual(requests[0]["params"], [{"commitment": "confirmed"}])
        self.assertEqual(requests[1]["params"], ["abc", {"commitment": "finalized"}])
        self.assertEqual(requests[2]["params"], ["abc", {"encoding": "base64"}])
        self.assertEqual(
            requests[3]["params"],
            ["AQI=", {"encoding": "base64", "skipPreflight": True}],
        )

    async def test_concurrent_calls(self):
        async def handler(request: httpx.Request) -> httpx.Response:
            account = json.loads(request.content)["params"][0]
            await asyncio.sleep(0)
            return httpx.Response(
                200,
                json={"jsonrpc": "2.0", "id": 1, "result": {"value": len(account)}},
            )

        self.rpc = self.client(handler)
        accounts = ["a" * n for n in range(1, 11)]
        balances = await asyncio.gather(
            *(self.rpc.get_balance(account) for account in accounts)
        )
        self.assertEqual(balances, list(range(1, 11)))

    async def test_invalid_endpoint(self):
        self.rpc = RpcClient("http://[::1")
        with self.assertRaises(TransportError) as cm:
            await self.rpc.call("getHealth")
        self.assertIsInstance(cm.exception.__cause__, httpx.InvalidURL)

    async def test_missing_context_value(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": None})

        self.rpc = self.client(handler)
        with self.assertRaises(ResponseDecodeError):
            await self.rpc.get_balance("abc")
        with self.assertRaises(ResponseDecodeError):
            await self.rpc.get_latest_blockhash()

    async def test_malformed_account_data(self):
        def handler(request: httpx.Request) -> httpx.Response:
            info = {"data": ["not base64!", "base64"]}
            return httpx.Response(
                200, json={"jsonrpc": "2.0", "id": 1, "result": {"value": info}}
            )

        self.rpc = self.client(handler)
        with self.assertRaises(ResponseDecodeError):
            await self.rpc.get_account_data("abc")
