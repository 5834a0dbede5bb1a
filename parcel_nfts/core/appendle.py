"""
Append Orchestrator

An `Appendle` adds private files to the escrow tokens of an existing
collection. Files are supplied as a directory laid out as
`<root>/<tokenIndex>/<filename>`.

The workflow moves through `created -> planned -> paid -> appended`:

- `plan()` reads the chain contract and the escrow service to decide which
  NFTs need a new escrow token and which only need new assets.
- `request_payment()` charges for the files in the plan that have not been
  paid for yet and marks them paid in the progress ledger.
- `append()` creates the missing escrow tokens, links them on chain, then
  uploads every planned file and attaches it to its token.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from parcel_nfts.config import FeesConfig
from parcel_nfts.core.costs import calculate_cost, file_payment_key, payment_value
from parcel_nfts.core.files import NamedBlob
from parcel_nfts.core.ledger import LedgerNamespace, ProgressLedger
from parcel_nfts.core.networks import network_for_chain_id
from parcel_nfts.core.steps import confirm, step
from parcel_nfts.core.token_ids import decode_token_id, encode_token_id
from parcel_nfts.exceptions import (
    TransactionFailed,
    ValidationErrors,
    WorkflowStateError,
)
from parcel_nfts.integrations.base import (
    TX_STATUS_SUCCESS,
    ChainContracts,
    EscrowToken,
    NftContract,
    TokenEscrowService,
    WalletProvider,
)
from parcel_nfts.utils.fanout import gather_all

logger = logging.getLogger(__name__)

STATE_CREATED = "created"
STATE_PLANNED = "planned"
STATE_PAID = "paid"
STATE_APPENDED = "appended"


@dataclass
class Plan:
    # NFTs without an escrow token yet
    create: Dict[int, List[NamedBlob]] = field(default_factory=dict)
    # NFTs with an escrow token, and the files it does not hold yet
    append: Dict[int, Tuple[EscrowToken, List[NamedBlob]]] = field(default_factory=dict)

    def files(self) -> Iterator[Tuple[int, NamedBlob]]:
        for nft_id, files in self.create.items():
            for f in files:
                yield nft_id, f
        for nft_id, (_token, files) in self.append.items():
            for f in files:
                yield nft_id, f


def group_files_by_nft(files: Sequence[NamedBlob]) -> Tuple[Dict[int, List[NamedBlob]], List[str]]:
    """
    Group files laid out as `<root>/<tokenIndex>/<filename>` by token index.

    Hidden files are ignored. Returns the groups and the validation errors
    for files that do not follow the layout.
    """
    grouped: Dict[int, List[NamedBlob]] = {}
    errors: List[str] = []
    for f in files:
        if f.name.startswith("."):
            continue
        path = f.path
        parts = path.split("/")
        if len(parts) != 3:
            errors.append(f"unexpected file: {path}")
            continue
        _root_dir, nft_id_str, _file_name = parts
        if not (nft_id_str.isascii() and nft_id_str.isdigit()):
            errors.append(f"{nft_id_str} in {path} is not an NFT ID")
            continue
        grouped.setdefault(int(nft_id_str), []).append(f)
    return grouped, errors


class Appendle:
    """Appends private files to the escrow tokens of an existing collection."""

    def __init__(
        self,
        nft: NftContract,
        network: str,
        files: Dict[int, List[NamedBlob]],
        progress: LedgerNamespace,
        fees: Optional[FeesConfig] = None,
    ):
        if fees is None:
            from parcel_nfts.config import settings
            fees = settings.fees
        self.nft = nft
        self.network = network
        self.files = files
        self.progress = progress
        self.fees = fees
        self._plan: Optional[Plan] = None
        self._paid = False
        self._appended = False

    @classmethod
    async def create(
        cls,
        signer: WalletProvider,
        nft_address: str,
        files: Sequence[NamedBlob],
        ledger: ProgressLedger,
        contracts: ChainContracts,
        fees: Optional[FeesConfig] = None,
        interface_id: Optional[str] = None,
    ) -> "Appendle":
        """
        Validate the target network, contract and file layout.

        Raises:
            ValidationErrors: With every problem found.
        """
        if interface_id is None:
            from parcel_nfts.config import settings
            interface_id = settings.network.future_parcel_nft_interface_id

        validation_errors: List[str] = []

        chain_id = await signer.get_chain_id()
        network = network_for_chain_id(chain_id)
        if network is None:
            validation_errors.append("network must be Emerald Mainnet or Emerald Testnet")

        nft = contracts.nft.connect(nft_address, signer)
        try:
            if not await nft.supports_interface(interface_id):
                validation_errors.append(f"contract at {nft_address} does not implement IFutureParcelNFT")
        except Exception as e:
            logger.warning(f"Interface probe of {nft_address} failed: {e!r}")
            validation_errors.append(
                f"contract at {nft_address} could not be determined to be an IFutureParcelNFT"
            )

        grouped, layout_errors = group_files_by_nft(files)
        validation_errors.extend(layout_errors)

        if validation_errors:
            raise ValidationErrors(validation_errors)

        progress = ledger.namespace(json.dumps([network, nft_address]))
        return cls(nft, network, grouped, progress, fees)

    @property
    def paid(self) -> bool:
        return self._paid

    @property
    def plan_result(self) -> Optional[Plan]:
        return self._plan

    @property
    def state(self) -> str:
        if self._appended:
            return STATE_APPENDED
        if self._paid:
            return STATE_PAID
        if self._plan is not None:
            return STATE_PLANNED
        return STATE_CREATED

    def _require_plan(self, operation: str) -> Plan:
        if self._plan is None:
            raise WorkflowStateError(f"{operation}: not yet planned")
        return self._plan

    async def calculate_cost(self) -> float:
        """Returns the cost in ROSE of the planned files not yet paid for."""
        plan = self._require_plan("calculate_cost")
        unpaid = []
        for nft_id, f in plan.files():
            if not await self.progress.get(file_payment_key(self.nft.address, nft_id, f.name)):
                unpaid.append(f)
        return calculate_cost(unpaid, self.fees.cost_per_file, self.fees.cost_per_gb)

    async def plan(self, escrow: TokenEscrowService) -> None:
        if self._plan is not None:
            return

        plan = Plan()
        nft_ids = sorted(self.files)

        async with step("failed to fetch existing Parcel token mapping"):
            token_ids = await gather_all(self._fetch_parcel_token_id(nft_id) for nft_id in nft_ids)

        async def plan_nft(nft_id: int, token_id: Optional[str]) -> None:
            files = self.files[nft_id]
            if token_id is None:
                plan.create[nft_id] = files
                return
            token, existing_names = await self._fetch_existing_assets(escrow, token_id)
            new_files = [f for f in files if f.name not in existing_names]
            plan.append[nft_id] = (token, new_files)

        await gather_all(plan_nft(nft_id, tid) for nft_id, tid in zip(nft_ids, token_ids))

        logger.info(
            f"plan: {len(plan.create)} tokens to create, {len(plan.append)} tokens to append to",
            extra={"campaign": self.progress.name},
        )
        self._plan = plan

    async def _fetch_parcel_token_id(self, nft_id: int) -> Optional[str]:
        return decode_token_id(await self.nft.get_parcel_token(nft_id))

    async def _fetch_existing_assets(self, escrow: TokenEscrowService, token_id: str):
        async with step(f"failed to fetch Parcel token {token_id}"):
            token = await escrow.get_token(token_id)

        async with step(f"failed to fetch assets for Parcel token {token.id}"):
            assets = await token.search_assets()

        names = set()
        for asset in assets:
            if asset.type != "document":
                continue
            async with step(f"failed to fetch assets {asset.id} in Parcel token {token.id}"):
                doc = await escrow.get_document(asset.id)
            if doc.title:
                names.add(doc.title)
        return token, names

    async def request_payment(self, signer: WalletProvider) -> None:
        plan = self._require_plan("request_payment")
        if self._paid:
            return

        cost = await self.calculate_cost()
        if cost > 0:
            value = payment_value(cost)
            logger.info(
                f"request_payment: paying {cost} ROSE to {self.fees.treasury_address}",
                extra={"campaign": self.progress.name},
            )
            tx = await signer.send_transaction(self.fees.treasury_address, value)
            receipt = await tx.wait()
            if receipt.status != TX_STATUS_SUCCESS:
                raise TransactionFailed(tx.hash, receipt.status)
        for nft_id, f in plan.files():
            await self.progress.set(file_payment_key(self.nft.address, nft_id, f.name), True)
        self._paid = True

    async def append(self, escrow: TokenEscrowService) -> None:
        plan = self._require_plan("append")
        if not self._paid:
            raise WorkflowStateError("append: not yet paid")
        if self._appended:
            return

        to_upload: Dict[int, Tuple[EscrowToken, List[NamedBlob]]] = dict(plan.append)

        created = await gather_all(
            self._get_or_create_token(escrow, nft_id) for nft_id in sorted(plan.create)
        )
        for nft_id, token in created:
            to_upload[nft_id] = (token, plan.create[nft_id])

        if created:
            async with step("failed to set Parcel tokens on NFT contract"):
                await confirm(
                    await self.nft.set_parcel_tokens(
                        [nft_id for nft_id, _ in created],
                        [encode_token_id(token.id) for _, token in created],
                    )
                )

        await gather_all(
            self._upload_and_attach(escrow, nft_id, token, f)
            for nft_id, (token, files) in sorted(to_upload.items())
            for f in files
        )
        self._appended = True
        logger.info("append: done!", extra={"campaign": self.progress.name})

    async def _get_or_create_token(self, escrow: TokenEscrowService, nft_id: int) -> Tuple[int, EscrowToken]:
        progress_key = f"token-{nft_id}"
        cached_token_id = await self.progress.get(progress_key)
        if cached_token_id:
            async with step(f"failed to get previously created Parcel token for NFT ID {nft_id}"):
                return nft_id, await escrow.get_token(cached_token_id)

        async with step(f"failed to create Parcel token for NFT ID {nft_id}"):
            token = await escrow.mint_token({
                "grant": {"condition": None},  # Allow full access to the holder.
                "consumesAssets": True,
                "transferability": {
                    "remote": {
                        "network": self.network,
                        "address": self.nft.address,
                        "tokenId": nft_id,
                    },
                },
            })
            await self.progress.set(progress_key, token.id)
        return nft_id, token

    async def _upload_and_attach(
        self, escrow: TokenEscrowService, nft_id: int, token: EscrowToken, f: NamedBlob
    ) -> None:
        progress_key = f"doc-id-{nft_id}-{f.name}"
        asset_id = await self.progress.get(progress_key)
        if not asset_id:
            async with step(f"failed to add {f.name} to Parcel token {token.id}"):
                doc = await escrow.upload_document(f.data, owner="escrow", details={"title": f.name})
                asset_id = doc.id
                await self.progress.set(progress_key, asset_id)

        async with step(f"failed to add {asset_id} to Parcel token {token.id}"):
            await token.add_asset(asset_id)
