"""Tests for downloading tokenized private data."""

import pytest

from parcel_nfts.core.download import download_tokenized_data, wait_for_token
from parcel_nfts.exceptions import BridgeTimeout, StepFailure, TransactionFailed
from parcel_nfts.integrations.base import EscrowedAsset
from tests.fakes import HOLDER, FakeBridgeAdapter, FakeIdentity, FakeNft, FakeWallet


@pytest.fixture
def holder():
    return FakeWallet(address=HOLDER)


@pytest.fixture
def nft():
    contract = FakeNft("0xNft1")
    contract.owners[3] = HOLDER
    return contract


@pytest.fixture
def adapter():
    return FakeBridgeAdapter()


@pytest.fixture
def token(escrow):
    token = escrow.add_token("T-private", name="Test Collection #3")
    escrow.add_document("D-private", "secret3.txt", b"the secret payload")
    token.assets.append(EscrowedAsset(id="D-private"))
    return token


class Saver:
    def __init__(self):
        self.saved = []

    def __call__(self, data, name):
        self.saved.append((data, name))


@pytest.mark.unit
class TestDownloadTokenizedData:

    @pytest.mark.asyncio
    async def test_download_locks_saves_and_unlocks(self, escrow, holder, nft, adapter, token):
        escrow.identity = FakeIdentity(balances=[0, 0, 1])
        save = Saver()

        await download_tokenized_data(
            escrow, holder, nft, adapter, 3, "T-private", save, timeout_seconds=5, poll_interval=0
        )

        assert nft.calls_named("safe_transfer_from") == [("safe_transfer_from", HOLDER, adapter.address, 3)]
        assert escrow.identity.balance_calls == 3
        assert save.saved == [(b"the secret payload", "Test Collection #3")]
        assert adapter.unlocks == [(HOLDER, nft.address, 3)]

    @pytest.mark.asyncio
    async def test_already_locked_nft_is_not_transferred(self, escrow, holder, nft, adapter, token):
        nft.owners[3] = adapter.address
        save = Saver()

        await download_tokenized_data(
            escrow, holder, nft, adapter, 3, "T-private", save, timeout_seconds=5, poll_interval=0
        )

        assert nft.calls_named("safe_transfer_from") == []
        assert len(save.saved) == 1

    @pytest.mark.asyncio
    async def test_async_save_file_is_awaited(self, escrow, holder, nft, adapter, token):
        saved = []

        async def save(data, name):
            saved.append(name)

        await download_tokenized_data(
            escrow, holder, nft, adapter, 3, "T-private", save, timeout_seconds=5, poll_interval=0
        )

        assert saved == ["Test Collection #3"]

    @pytest.mark.asyncio
    async def test_identity_is_created_for_new_holder(self, escrow, holder, nft, adapter, token):
        escrow.identity = None

        await download_tokenized_data(
            escrow, holder, nft, adapter, 3, "T-private", Saver(), timeout_seconds=5, poll_interval=0
        )

        assert escrow.created_identities[0]["eth_address"] == HOLDER

    @pytest.mark.asyncio
    async def test_token_without_assets_unlocks_and_fails(self, escrow, holder, nft, adapter):
        escrow.add_token("T-empty", name="empty")

        with pytest.raises(StepFailure) as exc:
            await download_tokenized_data(
                escrow, holder, nft, adapter, 3, "T-empty", Saver(), timeout_seconds=5, poll_interval=0
            )

        assert exc.value.message == "failed to fetch Parcel token assets"
        assert adapter.unlocks == [(HOLDER, nft.address, 3)]

    @pytest.mark.asyncio
    async def test_unknown_token(self, escrow, holder, nft, adapter):
        with pytest.raises(StepFailure) as exc:
            await download_tokenized_data(
                escrow, holder, nft, adapter, 3, "T-unknown", Saver(), timeout_seconds=5, poll_interval=0
            )

        assert exc.value.message == "failed to fetch Parcel token"

    @pytest.mark.asyncio
    async def test_bridge_timeout(self, escrow, holder, nft, adapter, token):
        escrow.identity = FakeIdentity(balances=[0])
        save = Saver()

        with pytest.raises(StepFailure) as exc:
            await download_tokenized_data(
                escrow, holder, nft, adapter, 3, "T-private", save, timeout_seconds=3, poll_interval=0
            )

        assert exc.value.message == "failed to wait for token to be bridged"
        assert isinstance(exc.value.source, BridgeTimeout)
        assert escrow.identity.balance_calls == 3
        assert save.saved == []


    @pytest.mark.asyncio
    async def test_reverted_lock_fails_before_bridging(self, escrow, holder, nft, adapter, token):
        escrow.identity = FakeIdentity(balances=[1])
        nft.tx_status = 0
        save = Saver()

        with pytest.raises(StepFailure) as exc:
            await download_tokenized_data(
                escrow, holder, nft, adapter, 3, "T-private", save, timeout_seconds=5, poll_interval=0
            )

        assert exc.value.message == "failed to lock NFT into Parcel bridge adapter"
        assert isinstance(exc.value.source, TransactionFailed)
        assert escrow.identity.balance_calls == 0
        assert save.saved == []
        assert adapter.unlocks == []

    @pytest.mark.asyncio
    async def test_reverted_unlock_is_reported(self, escrow, holder, nft, adapter, token):
        escrow.identity = FakeIdentity(balances=[1])
        adapter.tx_status = 0
        save = Saver()

        with pytest.raises(StepFailure) as exc:
            await download_tokenized_data(
                escrow, holder, nft, adapter, 3, "T-private", save, timeout_seconds=5, poll_interval=0
            )

        assert exc.value.message == "failed to unlock token from Parcel bridge adapter"
        assert isinstance(exc.value.source, TransactionFailed)
        assert len(save.saved) == 1

@pytest.mark.unit
@pytest.mark.asyncio
async def test_wait_for_token_returns_once_received():
    identity = FakeIdentity(balances=[0, 1])
    await wait_for_token(identity, "T1", timeout_seconds=5, poll_interval=0)
    assert identity.balance_calls == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_wait_for_token_gives_up():
    with pytest.raises(BridgeTimeout):
        await wait_for_token(FakeIdentity(balances=[0]), "T1", timeout_seconds=2, poll_interval=0)
