"""
Application State

Holds the connection state the front end reacts to: the connected wallet,
its network, the escrow service client and the wallet's escrow identity.
State changes only through discrete events (wallet connected, account
changed, chain changed, disconnected, escrow connected).
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from parcel_nfts.core.networks import network_for_chain_id
from parcel_nfts.exceptions import StepFailure
from parcel_nfts.integrations.base import EscrowIdentity, TokenEscrowService, WalletProvider
from parcel_nfts.integrations.parcel_identity import get_or_create_identity

logger = logging.getLogger(__name__)

Listener = Callable[["AppState"], None]


@dataclass
class AppState:
    wallet: Optional[WalletProvider] = None
    address: Optional[str] = None
    chain_id: Optional[int] = None
    escrow: Optional[TokenEscrowService] = None
    identity: Optional[EscrowIdentity] = None
    error: Optional[str] = None

    def __post_init__(self):
        self._listeners: List[Listener] = []

    @property
    def network(self) -> Optional[str]:
        if self.chain_id is None:
            return None
        return network_for_chain_id(self.chain_id)

    @property
    def is_connected(self) -> bool:
        return self.wallet is not None and self.address is not None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called after every change. Returns an unsubscribe function."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    async def on_wallet_connected(self, wallet: WalletProvider) -> None:
        self.wallet = wallet
        self.address = await wallet.get_address()
        self.chain_id = await wallet.get_chain_id()
        self._reset_escrow()
        logger.info(f"AppState: wallet {self.address} connected on chain {self.chain_id}")
        self._notify()

    async def on_accounts_changed(self) -> None:
        if self.wallet is None:
            return
        self.address = await self.wallet.get_address()
        # The escrow session belongs to the previous account.
        self._reset_escrow()
        self._notify()

    async def on_chain_changed(self) -> None:
        if self.wallet is None:
            return
        self.chain_id = await self.wallet.get_chain_id()
        self._notify()

    def on_disconnected(self) -> None:
        self.wallet = None
        self.address = None
        self.chain_id = None
        self._reset_escrow()
        logger.info("AppState: wallet disconnected")
        self._notify()

    async def connect_escrow(self, make_escrow: Callable[[str], TokenEscrowService]) -> None:
        """
        Connect to the escrow service as the current wallet and resolve its identity.

        Failures are reported through `error` rather than raised.
        """
        if not self.is_connected:
            return
        self.escrow = make_escrow(self.address)
        self.identity = None
        try:
            self.identity = await get_or_create_identity(self.escrow, self.wallet)
            self.error = None
        except StepFailure as e:
            logger.error(f"AppState: {e}")
            if e.message == "failed to fetch Parcel identity":
                self.error = "Failed to fetch Parcel identity. Please try again later."
            else:
                self.error = "Failed to create Parcel identity. Please try again later."
        self._notify()

    def _reset_escrow(self) -> None:
        self.escrow = None
        self.identity = None
