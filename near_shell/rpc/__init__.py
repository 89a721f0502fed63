"""
near_shell.rpc — JSON-RPC transport to the node.

    from near_shell.rpc import JsonRpcProvider
"""

from __future__ import annotations

from .http import JsonRpcProvider, get_transaction_last_result

__all__ = ["JsonRpcProvider", "get_transaction_last_result"]
