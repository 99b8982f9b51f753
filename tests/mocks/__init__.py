"""
Savings Vault Cranker Test Mocks
================================
Reusable mock classes for isolated testing.
"""

from tests.mocks.mock_rpc import MockAccountInfo, MockRpcClient

__all__ = [
    "MockAccountInfo",
    "MockRpcClient",
]
