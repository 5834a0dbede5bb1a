"""
Workflow step helpers.

Every externally-visible action runs inside a named step. A failure inside a
step is logged and re-raised as a `StepFailure` carrying the step's message
and the original exception.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from parcel_nfts.exceptions import StepFailure, TransactionFailed
from parcel_nfts.integrations.base import TX_STATUS_SUCCESS, TransactionReceipt, TransactionResponse

logger = logging.getLogger(__name__)


@asynccontextmanager
async def step(failure_message: str, progress_message: Optional[str] = None) -> AsyncIterator[None]:
    if progress_message:
        logger.info(progress_message)
    try:
        yield
    except Exception as e:
        logger.error(f"{failure_message}: {e!r}")
        raise StepFailure(failure_message, e) from e


async def confirm(tx: TransactionResponse) -> TransactionReceipt:
    """Wait for a transaction to be mined and fail unless it succeeded."""
    receipt = await tx.wait()
    if receipt.status != TX_STATUS_SUCCESS:
        raise TransactionFailed(tx.hash, receipt.status)
    return receipt
