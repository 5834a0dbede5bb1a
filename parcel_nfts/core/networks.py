"""Chain id to escrow bridge network name."""

from typing import Iterable, Optional

MAINNET = "emerald-mainnet"
TESTNET = "emerald-testnet"


def network_for_chain_id(
    chain_id: int,
    mainnet_chain_id: Optional[int] = None,
    testnet_chain_ids: Optional[Iterable[int]] = None,
) -> Optional[str]:
    """Return the network name for a chain id, or None when it is not supported."""
    if mainnet_chain_id is None or testnet_chain_ids is None:
        from parcel_nfts.config import settings
        if mainnet_chain_id is None:
            mainnet_chain_id = settings.network.mainnet_chain_id
        if testnet_chain_ids is None:
            testnet_chain_ids = settings.network.testnet_chain_ids

    if chain_id == mainnet_chain_id:
        return MAINNET
    if chain_id in set(testnet_chain_ids):
        return TESTNET
    return None
