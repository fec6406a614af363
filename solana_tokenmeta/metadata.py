"""
Metadata utilities for the solana-tokenmeta SDK.

Provides the version of the installed package and the HTTP header that
identifies this SDK to RPC providers.

Examples:
    Adding the header to a request::

        import httpx
        from solana_tokenmeta.metadata import Metadata

        headers = {Metadata.CLIENT_HEADER: Metadata.get_client_header_val()}
        response = httpx.post("https://api.devnet.solana.com", headers=headers, json=...)

Note:
    Version information is detected from the installed package metadata, so the
    package must be installed (``pip install -e .`` works) for the header to be
    available.
"""

import importlib.metadata as metadata

# Package name constant for metadata lookup
PACKAGE_NAME = "solana-tokenmeta"


class Metadata:
    """Client identification sent with every RPC request.

    Constants:
        CLIENT_HEADER: The HTTP header name carrying the client identifier
    """

    CLIENT_HEADER = "x-solana-tokenmeta-client"

    @staticmethod
    def version() -> str:
        return metadata.version(PACKAGE_NAME)

    @staticmethod
    def get_client_header_val() -> str:
        """Header value in the format ``solana-tokenmeta-python/{version}``.

        Raises:
            PackageNotFoundError: If the solana-tokenmeta package is not installed.
        """
        return f"solana-tokenmeta-python/{Metadata.version()}"
