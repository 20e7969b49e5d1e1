"""
API clients for external services.

Contains the Solana JSON-RPC client, the Dune Analytics client and the LST
registry lookup.
"""

from .solana_rpc_client import SolanaRpcClient
from .dune_client import DuneClient

__all__ = ['SolanaRpcClient', 'DuneClient']
