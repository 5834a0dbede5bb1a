"""
Global test configuration and fixtures.
"""

from pathlib import Path

import pytest

from parcel_nfts.config import FeesConfig
from parcel_nfts.core.ledger import ProgressLedger
from parcel_nfts.integrations.base import ChainContracts
from tests.fakes import (
    FakeBlobStore,
    FakeEscrow,
    FakeFactory,
    FakeNft,
    FakeRevenueShare,
    FakeWallet,
)


@pytest.fixture
def temp_dir(tmp_path) -> Path:
    """Provide a temporary directory for test files."""
    return tmp_path


@pytest.fixture
def ledger(tmp_path) -> ProgressLedger:
    """Provides a progress ledger in a temporary directory. The table is created on first use."""
    return ProgressLedger(db_path=str(tmp_path / "progress.db"))


@pytest.fixture
def fees() -> FeesConfig:
    return FeesConfig()


@pytest.fixture
def wallet() -> FakeWallet:
    return FakeWallet()


@pytest.fixture
def escrow() -> FakeEscrow:
    return FakeEscrow()


@pytest.fixture
def blob_store() -> FakeBlobStore:
    return FakeBlobStore()


@pytest.fixture
def contracts() -> ChainContracts:
    return ChainContracts(
        nft=FakeFactory("Nft", FakeNft),
        revenue_share=FakeFactory("RevenueShare", FakeRevenueShare),
    )
