"""
Savings Vault Cranker Test Configuration
========================================
Shared fixtures and pytest markers for the test suite.
"""

import pytest
from solders.keypair import Keypair
from solders.pubkey import Pubkey


# ============================================================================
# PYTEST MARKERS
# ============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "network: marks tests that require network access"
    )


# ============================================================================
# SHARED FIXTURES
# ============================================================================

@pytest.fixture(autouse=True)
def quiet_logger():
    """Keep the Rich console out of test output."""
    from src.shared.system.logging import Logger
    Logger.set_silent(True)
    yield
    Logger.set_silent(False)


@pytest.fixture
def program_id():
    return Pubkey.from_string("HfJVM6Ayjajt9H58AZoCFqkCQQFehSeQfGQbi3crxT8W")


@pytest.fixture
def wallet():
    return Pubkey.from_string("TUAXRFzyLeXmG9wPLaMXt66jUagfrWmL9oGq4rMwjAu")


@pytest.fixture
def mint():
    return Pubkey.from_string("FmAFDKSPL61s8kQZCHwsZULA313pdHJ73PuBK4wePpNh")


@pytest.fixture
def cranker():
    return Keypair()


@pytest.fixture
def cranker_config(program_id, wallet, mint):
    """Small, fast config: 30-day interval, tiny timeouts."""
    from src.shared.config.cranker import CrankerConfig, CrankTarget

    return CrankerConfig(
        rpc_url="http://mock-rpc",
        program_id=program_id,
        compute_units=400_000,
        targets=(CrankTarget(wallet=wallet, mint=mint, label="default"),),
        crank_interval_s=30 * 24 * 3600,
        check_interval_s=3600,
        rpc_timeout_s=0.5,
        retry_backoff_s=3600,
        retry_backoff_max_s=4 * 3600,
        confirm_transactions=True,
    )


@pytest.fixture
def mock_rpc_client():
    from tests.mocks.mock_rpc import MockRpcClient
    return MockRpcClient()
