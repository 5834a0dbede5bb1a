"""
Mint Orchestrator

A `Bundle` is a validated collection manifest plus its files. `Bundle.mint`
turns it into a live collection:

1. upload the public images to the blob store
2. deploy the revenue share contract
3. deploy the NFT contract
4. mint one escrow token per item, transferable over the bridge
5. upload the per-item metadata to the blob store
6. upload the private data to escrow and attach it to the item's token
7. set the final base URI (unless the collection is a blind box)
8. premint to the creator (and airdrop designated items) when there is no public mint

Each step consults the campaign's progress ledger before acting and records
its result right after, so calling `mint` again after a failure resumes
without repeating deployments or paid escrow writes. Steps 1 and 5 are not
tracked: content addressing makes them idempotent.
"""

import json
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from parcel_nfts.config import FeesConfig
from parcel_nfts.core.costs import round_half_up
from parcel_nfts.core.files import NamedBlob, index_by_name
from parcel_nfts.core.ledger import LedgerNamespace, ProgressLedger
from parcel_nfts.core.manifest import MANIFEST_FILENAME, Manifest, validate_manifest
from parcel_nfts.core.networks import TESTNET, network_for_chain_id
from parcel_nfts.core.steps import confirm, step
from parcel_nfts.exceptions import ValidationErrors
from parcel_nfts.integrations.base import (
    BlobStore,
    ChainContracts,
    EscrowToken,
    NftContract,
    TokenEscrowService,
    WalletProvider,
)
from parcel_nfts.utils.fanout import gather_all

logger = logging.getLogger(__name__)

# Progress ledger keys
RESULT_KEY = "result"
REVENUE_SHARE_KEY = "revenueShareContract"
NFT_CONTRACT_KEY = "nftContract"
PARCEL_TOKENS_KEY = "parcelTokens"
TOKEN_DOCS_KEY = "tokenDocs"
AIRDROP_KEY = "airdrop"


@dataclass(frozen=True)
class MintResult:
    address: str
    base_uri: str

    def to_dict(self) -> Dict[str, str]:
        return {"address": self.address, "baseUri": self.base_uri}

    @classmethod
    def from_dict(cls, data: Dict[str, str]) -> "MintResult":
        return cls(address=data["address"], base_uri=data["baseUri"])


@dataclass(frozen=True)
class ImagesUpload:
    cid: str
    filenames: List[str]


def campaign_namespace(manifest: Manifest) -> str:
    return json.dumps([manifest.title, manifest.symbol])


class Bundle:
    """A validated collection ready to be minted."""

    def __init__(
        self,
        manifest: Manifest,
        files: Dict[str, NamedBlob],
        progress: LedgerNamespace,
        contracts: ChainContracts,
        fees: Optional[FeesConfig] = None,
    ):
        if fees is None:
            from parcel_nfts.config import settings
            fees = settings.fees
        self.manifest = manifest
        self.files = files
        self.progress = progress
        self.contracts = contracts
        self.fees = fees

    @classmethod
    def create(
        cls,
        files: Sequence[NamedBlob],
        ledger: ProgressLedger,
        contracts: ChainContracts,
        fees: Optional[FeesConfig] = None,
    ) -> "Bundle":
        """
        Validate the manifest found among `files` and build a bundle.

        Raises:
            ValidationErrors: If the manifest is missing, malformed, or
                references missing or duplicated files.
        """
        by_name = index_by_name(files)
        manifest_file = by_name.get(MANIFEST_FILENAME)
        if manifest_file is None:
            raise ValidationErrors([f"Missing {MANIFEST_FILENAME}"])

        manifest = validate_manifest(manifest_file.data, by_name.keys())
        progress = ledger.namespace(campaign_namespace(manifest))
        return cls(manifest, by_name, progress, contracts, fees)

    @property
    def collection_size(self) -> int:
        return self.manifest.collection_size

    @property
    def has_public_mint(self) -> bool:
        return self.manifest.has_public_mint

    @property
    def total_royalty_percent(self) -> float:
        fee = 0 if self.has_public_mint else self.fees.royalty_fee_percent
        return self.manifest.creator_royalty + fee

    @property
    def royalty_numerator(self) -> int:
        """The collection's royalty, as a fraction of the fee denominator."""
        return round_half_up(self.total_royalty_percent * self.fees.denominator / 100)

    @property
    def mint_fee_numerator(self) -> int:
        return round_half_up(self.fees.mint_fee_percent * self.fees.denominator / 100)

    @property
    def royalty_fee_numerator(self) -> int:
        """The facilitator's share of royalties received by the revenue share contract."""
        if self.has_public_mint or self.total_royalty_percent == 0:
            return 0
        return math.floor(
            self.fees.royalty_fee_percent * self.fees.denominator / self.total_royalty_percent
        )

    async def mint(
        self,
        escrow: TokenEscrowService,
        signer: WalletProvider,
        blob_store: BlobStore,
    ) -> MintResult:
        cached = await self.progress.get(RESULT_KEY)
        if cached:
            logger.info(
                f"mint: already minted as {cached['address']}", extra={"campaign": self.progress.name}
            )
            return MintResult.from_dict(cached)

        async with step("failed to upload public images", "mint: uploading images"):
            images = await self._upload_public_images(blob_store)

        async with step("failed to deploy revenue share contract", "mint: deploying revenue share contract"):
            creator = await signer.get_address()
            revenue_share = await self._deploy_revenue_share_contract(signer, creator)

        async with step("failed to create NFT contract", "mint: deploying contract"):
            nft = await self._deploy_nft_contract(signer, revenue_share.address)

        async with step("failed to create Parcel tokens", "mint: creating parcel tokens"):
            network = network_for_chain_id(await signer.get_chain_id()) or TESTNET
            parcel_tokens = await self._create_parcel_tokens(escrow, nft, network)

        async with step("failed to upload token metadatas", "mint: uploading token metadatas"):
            metadatas_cid = await self._upload_metadatas(blob_store, images, parcel_tokens)

        async with step("failed to tokenize private data", "mint: uploading and tokenizing private data"):
            await self._upload_and_tokenize_private_data(escrow, parcel_tokens)

        base_uri = blob_store.link(metadatas_cid)

        async with step("failed to set token base uri"):
            await self._finalize_base_uri(nft, base_uri)

        async with step("failed to premint tokens"):
            await self._premint(nft, creator)

        result = MintResult(address=nft.address, base_uri=base_uri)
        await self.progress.set(RESULT_KEY, result.to_dict())
        logger.info("mint: done!", extra={"campaign": self.progress.name})
        return result

    async def _upload_public_images(self, blob_store: BlobStore) -> ImagesUpload:
        filenames = []
        blobs = []
        for i, descriptor in enumerate(self.manifest.nfts):
            image = self.files[descriptor.public_image]
            stored_filename = f"{i}.{image.extension}"
            filenames.append(stored_filename)
            blobs.append(image.renamed(stored_filename))
        cid = await blob_store.store_directory(blobs)
        return ImagesUpload(cid=cid, filenames=filenames)

    async def _deploy_revenue_share_contract(self, signer: WalletProvider, creator: str) -> Any:
        factory = self.contracts.revenue_share
        created_addr = await self.progress.get(REVENUE_SHARE_KEY)
        if created_addr:
            logger.info(f"mint: skipping deployment of revenue share contract. using {created_addr}")
            return factory.connect(created_addr, signer)

        contract = await factory.deploy(
            signer,
            creator,
            self.fees.facilitator_address,
            self.mint_fee_numerator,
            self.royalty_fee_numerator,
        )
        await self.progress.set(REVENUE_SHARE_KEY, contract.address)
        return contract

    async def _deploy_nft_contract(self, signer: WalletProvider, revenue_share_addr: str) -> NftContract:
        factory = self.contracts.nft
        created_addr = await self.progress.get(NFT_CONTRACT_KEY)
        if created_addr:
            logger.info(f"mint: skipping deployment of nft contract. using {created_addr}")
            return factory.connect(created_addr, signer)

        minting = self.manifest.minting
        contract = await factory.deploy(
            signer,
            self.manifest.title,
            self.manifest.symbol,
            self.manifest.initial_base_uri or "",
            revenue_share_addr,
            self.collection_size,
            minting.premint_price if minting else 0,
            minting.max_premint_count if minting else 0,
            minting.mint_price if minting else 0,
            minting.max_mint_count if minting else 0,
            self.royalty_numerator,
        )
        await self.progress.set(NFT_CONTRACT_KEY, contract.address)
        return contract

    async def _create_parcel_tokens(
        self, escrow: TokenEscrowService, nft: NftContract, network: str
    ) -> List[EscrowToken]:
        created_tokens: Dict[str, str] = await self.progress.get(PARCEL_TOKENS_KEY) or {}

        async def create_token(i: int) -> EscrowToken:
            name = f"{self.manifest.title} #{i}"
            if created_tokens.get(name):
                logger.info(f"mint: skipping creating parcel token with name {name}")
                return await escrow.get_token(created_tokens[name])
            token = await escrow.mint_token({
                "name": name,
                "grant": {"condition": None},  # Allow full access.
                "consumesAssets": True,
                "transferability": {
                    "remote": {
                        "network": network,
                        "address": nft.address,
                        "tokenId": i,
                    },
                },
            })
            created_tokens[name] = token.id
            await self.progress.set(PARCEL_TOKENS_KEY, created_tokens)
            return token

        return await gather_all(create_token(i) for i in range(self.collection_size))

    async def _upload_metadatas(
        self,
        blob_store: BlobStore,
        images: ImagesUpload,
        parcel_tokens: List[EscrowToken],
    ) -> str:
        images_link = blob_store.link(images.cid)
        metadatas = []
        for i, descriptor in enumerate(self.manifest.nfts):
            metadata = {
                "name": descriptor.title or parcel_tokens[i].name,
                "image": f"{images_link}{images.filenames[i]}",
                "parcel_token": parcel_tokens[i].id,
                "attributes": descriptor.attributes,
            }
            if descriptor.description is not None:
                metadata["description"] = descriptor.description
            metadatas.append(
                NamedBlob(
                    name=str(i),
                    data=json.dumps(metadata, indent=2).encode("utf-8"),
                    content_type="application/json",
                )
            )
        return await blob_store.store_directory(metadatas)

    async def _upload_and_tokenize_private_data(
        self, escrow: TokenEscrowService, parcel_tokens: List[EscrowToken]
    ) -> None:
        tok_docs: Dict[str, Dict[str, Any]] = await self.progress.get(TOKEN_DOCS_KEY) or {}

        async def tokenize(i: int) -> None:
            descriptor = self.manifest.nfts[i]
            token = parcel_tokens[i]
            entry = tok_docs.setdefault(token.id, {})
            if entry.get("id") is None:
                private_data = self.files[descriptor.private_data]
                doc = await escrow.upload_document(
                    private_data.data,
                    owner="escrow",
                    details={"title": private_data.name},
                )
                entry["id"] = doc.id
                await self.progress.set(TOKEN_DOCS_KEY, tok_docs)
            else:
                logger.info(f"mint: skipping upload of token {i}'s document")

            if entry.get("tokenized"):
                logger.info(f"mint: skipping tokenization of documents in token {i}")
                return
            await token.add_asset(entry["id"])
            entry["tokenized"] = True
            await self.progress.set(TOKEN_DOCS_KEY, tok_docs)

        await gather_all(tokenize(i) for i in range(self.collection_size))

    async def _finalize_base_uri(self, nft: NftContract, base_uri: str) -> None:
        if self.manifest.is_blind_box:
            return
        if await nft.base_uri() != "":
            return
        tx = await nft.set_final_base_uri(base_uri)
        logger.info(f"mint: setting token base uri via {tx.hash}")
        await confirm(tx)

    async def _premint(self, nft: NftContract, creator: str) -> None:
        if self.has_public_mint:
            if any(d.owner for d in self.manifest.nfts):
                logger.warning("mint: item owners are ignored for collections with a public mint")
            return

        supply = await nft.total_supply()
        if supply < self.collection_size:
            remaining = self.collection_size - supply
            logger.info(f"mint: preminting {remaining} tokens to {creator}")
            await confirm(await nft.mint_to([creator], [remaining]))

        airdrops = [(i, d.owner) for i, d in enumerate(self.manifest.nfts) if d.owner]
        if not airdrops or await self.progress.get(AIRDROP_KEY):
            return
        logger.info(f"mint: airdropping {len(airdrops)} tokens")
        await confirm(
            await nft.safe_transfer_from_batch(
                creator,
                [owner for _, owner in airdrops],
                [i for i, _ in airdrops],
            )
        )
        await self.progress.set(AIRDROP_KEY, True)
