# Copyright © The solana-tokenmeta Authors
# SPDX-License-Identifier: Apache-2.0

"""
Common configuration for the solana-tokenmeta examples.

Environment Variables:
    SOLANA_RPC_URL: RPC endpoint URL or cluster name (default: devnet)
    SOLANA_RPC_DEBUG: Any non-empty value dumps failed RPC exchanges
    SOLANA_RPC_API_KEY: Bearer token for providers that require one
"""

import os

# :!:>section_1
# Network Configuration - All can be overridden via environment variables

# Default: devnet, where metadata accounts can be created without real SOL
RPC_URL = os.getenv("SOLANA_RPC_URL", "https://api.devnet.solana.com")

RPC_DEBUG = bool(os.getenv("SOLANA_RPC_DEBUG"))

RPC_API_KEY = os.getenv("SOLANA_RPC_API_KEY")
# <:!:section_1
