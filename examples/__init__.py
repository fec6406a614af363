"""
solana-tokenmeta examples.

Example scripts:
    - common.py: Shared configuration read from the environment
    - mint_nft_instructions.py: Builds the instructions that turn a fresh mint
      into an NFT, then reads an existing metadata account from the network

Quick Start:
    Examples run directly from the command line::

        python -m examples.mint_nft_instructions <mint> <wallet>

Configuration:
    All examples read the endpoint from environment variables, see
    examples.common::

        SOLANA_RPC_URL=https://api.devnet.solana.com python -m examples.mint_nft_instructions ...

Note:
    Builders produce unsigned instructions; nothing here signs or submits a
    transaction.
"""
