"""
Escrow identity bootstrap.

A wallet needs an identity with the escrow service before it can receive
bridged tokens. The identity is looked up first and created, with a signed
proof of wallet ownership, only when the service reports that it does not
exist.
"""

import asyncio
import logging

from parcel_nfts.core.steps import step
from parcel_nfts.exceptions import EscrowApiError, StepFailure
from parcel_nfts.integrations.base import EscrowIdentity, TokenEscrowService, WalletProvider

logger = logging.getLogger(__name__)

IDENTITY_PROOF_MESSAGE = "parcel.createIdentity"


async def get_or_create_identity(escrow: TokenEscrowService, wallet: WalletProvider) -> EscrowIdentity:
    try:
        return await escrow.get_current_identity()
    except EscrowApiError as e:
        if e.status_code != 404:
            logger.error(f"failed to fetch Parcel identity: {e!r}")
            raise StepFailure("failed to fetch Parcel identity", e) from e
    except Exception as e:
        logger.error(f"failed to fetch Parcel identity: {e!r}")
        raise StepFailure("failed to fetch Parcel identity", e) from e

    # The identity does not exist, so create one.
    async with step("failed to create Parcel identity", "creating parcel identity"):
        eth_address, proof = await asyncio.gather(
            wallet.get_address(),
            wallet.sign_message(IDENTITY_PROOF_MESSAGE),
        )
        return await escrow.create_identity(eth_address=eth_address, proof=proof)
