"""
Base Collaborator Interfaces

Defines the interfaces of the external systems the minting workflows drive:
the wallet, the token escrow service, the chain contracts and the blob store.
Concrete implementations wrap SDKs or HTTP APIs; tests substitute mocks.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

from parcel_nfts.core.files import NamedBlob

TX_STATUS_SUCCESS = 1


@dataclass
class TransactionReceipt:
    """Outcome of a mined transaction."""
    status: int
    tx_hash: str = ""
    block_number: Optional[int] = None


class TransactionResponse(ABC):
    """A submitted transaction."""

    hash: str

    @abstractmethod
    async def wait(self) -> TransactionReceipt:
        """Wait until the transaction is mined."""
        pass


class WalletProvider(ABC):
    """The connected wallet signing on behalf of the user."""

    @abstractmethod
    async def get_address(self) -> str:
        pass

    @abstractmethod
    async def get_chain_id(self) -> int:
        pass

    @abstractmethod
    async def sign_message(self, message: str) -> str:
        pass

    @abstractmethod
    async def send_transaction(self, to: str, value: int) -> TransactionResponse:
        """Send `value` minimal units to `to`."""
        pass


@dataclass
class EscrowedAsset:
    id: str
    type: str = "document"


@dataclass
class EscrowDocument:
    id: str
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def title(self) -> Optional[str]:
        return self.details.get("title")


class EscrowToken(ABC):
    """A token held by the escrow service."""

    id: str
    name: Optional[str]

    @abstractmethod
    async def search_assets(self) -> List[EscrowedAsset]:
        pass

    @abstractmethod
    async def add_asset(self, asset_id: str) -> None:
        pass


class EscrowIdentity(ABC):
    """An identity registered with the escrow service."""

    id: str

    @abstractmethod
    async def get_token_balance(self, token_id: str) -> int:
        pass


class TokenEscrowService(ABC):
    """
    The data-tokenization service holding private assets in escrow.

    Implementations raise `EscrowApiError` for API errors, with the HTTP
    status code when there is one.
    """

    @abstractmethod
    async def get_current_identity(self) -> EscrowIdentity:
        pass

    @abstractmethod
    async def create_identity(self, eth_address: str, proof: str) -> EscrowIdentity:
        pass

    @abstractmethod
    async def mint_token(self, spec: Dict[str, Any]) -> EscrowToken:
        pass

    @abstractmethod
    async def get_token(self, token_id: str) -> EscrowToken:
        pass

    @abstractmethod
    async def get_document(self, document_id: str) -> EscrowDocument:
        pass

    @abstractmethod
    async def upload_document(
        self, data: bytes, owner: str, details: Optional[Dict[str, Any]] = None
    ) -> EscrowDocument:
        """Upload a document and return it once the upload has finished."""
        pass

    @abstractmethod
    def download_document(self, document_id: str) -> AsyncIterator[bytes]:
        pass


class NftContract(ABC):
    """The collection contract. View calls never send a transaction."""

    address: str

    @abstractmethod
    async def base_uri(self) -> str:
        pass

    @abstractmethod
    async def total_supply(self) -> int:
        pass

    @abstractmethod
    async def owner_of(self, token_id: int) -> str:
        pass

    @abstractmethod
    async def supports_interface(self, interface_id: str) -> bool:
        pass

    @abstractmethod
    async def get_parcel_token(self, token_id: int) -> int:
        pass

    @abstractmethod
    async def set_final_base_uri(self, uri: str) -> TransactionResponse:
        pass

    @abstractmethod
    async def mint_to(self, recipients: Sequence[str], counts: Sequence[int]) -> TransactionResponse:
        pass

    @abstractmethod
    async def safe_transfer_from(self, sender: str, recipient: str, token_id: int) -> TransactionResponse:
        pass

    @abstractmethod
    async def safe_transfer_from_batch(
        self, sender: str, recipients: Sequence[str], token_ids: Sequence[int]
    ) -> TransactionResponse:
        pass

    @abstractmethod
    async def set_parcel_tokens(
        self, token_ids: Sequence[int], parcel_tokens: Sequence[int]
    ) -> TransactionResponse:
        pass


class BridgeAdapterContract(ABC):
    """The adapter that bridges NFTs to the escrow service while locked."""

    address: str

    @abstractmethod
    async def unlock_erc721(self, recipient: str, nft_address: str, token_id: int) -> TransactionResponse:
        pass


class ContractFactory(ABC):
    """Deploys or attaches to one kind of contract on behalf of a wallet."""

    @abstractmethod
    async def deploy(self, signer: WalletProvider, *args: Any) -> Any:
        """Deploy a new contract and return it once deployed."""
        pass

    @abstractmethod
    def connect(self, address: str, signer: WalletProvider) -> Any:
        pass


@dataclass
class ChainContracts:
    """The contract factories used by the workflows."""
    nft: ContractFactory
    revenue_share: ContractFactory


class BlobStore(ABC):
    """Content-addressed storage for public files."""

    @abstractmethod
    async def store_directory(self, files: Sequence[NamedBlob]) -> str:
        """Store the files as one directory and return its content identifier."""
        pass

    @abstractmethod
    def link(self, cid: str) -> str:
        """Return the gateway URL of a stored directory, with a trailing slash."""
        pass
