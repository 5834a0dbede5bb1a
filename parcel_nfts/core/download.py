"""
Download of tokenized private data.

The holder of an NFT retrieves its private data by locking the NFT into the
bridge adapter, which transfers the matching escrow token to the holder's
escrow identity. Once the token has arrived, its document is downloaded and
the NFT is unlocked again.
"""

import asyncio
import inspect
import logging
from typing import Any, Callable, Optional

from parcel_nfts.core.steps import confirm, step
from parcel_nfts.exceptions import BridgeTimeout
from parcel_nfts.integrations.base import (
    BridgeAdapterContract,
    EscrowIdentity,
    NftContract,
    TokenEscrowService,
    WalletProvider,
)
from parcel_nfts.integrations.parcel_identity import get_or_create_identity

logger = logging.getLogger(__name__)


async def wait_for_token(
    identity: EscrowIdentity,
    token_id: str,
    timeout_seconds: int,
    poll_interval: float,
) -> None:
    """Poll the identity's balance of a token until it is positive."""
    for _ in range(timeout_seconds):
        if await identity.get_token_balance(token_id) > 0:
            return
        await asyncio.sleep(poll_interval)
    raise BridgeTimeout(f"token {token_id} was not received within {timeout_seconds} polls")


async def download_tokenized_data(
    escrow: TokenEscrowService,
    wallet: WalletProvider,
    nft: NftContract,
    bridge_adapter: BridgeAdapterContract,
    nft_token_id: int,
    parcel_token_id: str,
    save_file: Callable[[bytes, str], Any],
    timeout_seconds: Optional[int] = None,
    poll_interval: Optional[float] = None,
) -> None:
    """
    Download the private data of an NFT held by `wallet`.

    Args:
        escrow: The holder's escrow service client
        wallet: The holder's wallet
        nft: The collection contract
        bridge_adapter: The bridge adapter contract
        nft_token_id: The index of the item to download
        parcel_token_id: The escrow token linked to the item
        save_file: Called with the downloaded bytes and the token name; may be async
        timeout_seconds: Number of bridge polls before giving up
        poll_interval: Seconds between bridge polls
    """
    if timeout_seconds is None or poll_interval is None:
        from parcel_nfts.config import settings
        if timeout_seconds is None:
            timeout_seconds = settings.bridge.timeout_seconds
        if poll_interval is None:
            poll_interval = settings.bridge.poll_interval_seconds

    signer_addr = await wallet.get_address()

    async def unlock_token() -> None:
        logger.info("download: unlocking token")
        async with step("failed to unlock token from Parcel bridge adapter"):
            await confirm(await bridge_adapter.unlock_erc721(signer_addr, nft.address, nft_token_id))

    # Lock the NFT into the bridge adapter to receive the escrow token (if not already).
    if await nft.owner_of(nft_token_id) != bridge_adapter.address:
        async with step(
            "failed to lock NFT into Parcel bridge adapter",
            "download: locking NFT into Parcel bridge adapter",
        ):
            await confirm(await nft.safe_transfer_from(signer_addr, bridge_adapter.address, nft_token_id))

    identity = await get_or_create_identity(escrow, wallet)

    async with step("failed to fetch Parcel token"):
        token = await escrow.get_token(parcel_token_id)

    async with step("failed to fetch Parcel token assets"):
        assets = await token.search_assets()
    if len(assets) > 1:
        logger.warning(
            f"found {len(assets)} assets in token {parcel_token_id} but only the first will be downloaded"
        )
    if not assets:
        logger.error(f"token {parcel_token_id} has no assets?")
        await unlock_token()
        async with step("failed to fetch Parcel token assets"):
            raise ValueError("there are no assets")

    logger.info("download: waiting for Parcel to receive bridged token")
    async with step("failed to wait for token to be bridged"):
        await wait_for_token(identity, parcel_token_id, timeout_seconds, poll_interval)

    logger.info("download: downloading data asset")
    async with step("failed to download private asset"):
        chunks = []
        async for chunk in escrow.download_document(assets[0].id):
            chunks.append(chunk)
        saved = save_file(b"".join(chunks), token.name)
        if inspect.isawaitable(saved):
            await saved

    await unlock_token()
