"""
Append pricing.

Appending files costs a fixed amount per file plus an amount per gigabyte of
data. Files already paid for are marked in the progress ledger so that cost
estimates and payments stay idempotent across reloads.
"""

import math
from typing import Iterable, Optional, Tuple

from parcel_nfts.core.files import NamedBlob

WEI_PER_ROSE_SCALE = 10 ** 8
BYTES_PER_GB = 1024 * 1024 * 1024


def file_payment_key(nft_address: str, nft_id: int, file_name: str) -> str:
    return f"paid-{nft_address}-{nft_id}-{file_name}"


def calculate_cost(
    unpaid_files: Iterable[NamedBlob],
    cost_per_file: Optional[float] = None,
    cost_per_gb: Optional[float] = None,
) -> float:
    """Return the cost in ROSE of the given files, rounded to 3 decimal places."""
    if cost_per_file is None or cost_per_gb is None:
        from parcel_nfts.config import settings
        if cost_per_file is None:
            cost_per_file = settings.fees.cost_per_file
        if cost_per_gb is None:
            cost_per_gb = settings.fees.cost_per_gb

    count, size = _count_and_size(unpaid_files)
    file_cost = count * cost_per_file
    data_cost = (size / BYTES_PER_GB) * cost_per_gb
    return round_half_up((file_cost + data_cost) * 1000) / 1000


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with halves rounded up."""
    return math.floor(value + 0.5)


def payment_value(cost: float) -> int:
    """Convert a ROSE amount into the minimal units sent with the payment transaction."""
    return math.ceil(cost * 1e10) * WEI_PER_ROSE_SCALE


def _count_and_size(files: Iterable[NamedBlob]) -> Tuple[int, int]:
    count = 0
    size = 0
    for f in files:
        count += 1
        size += f.size
    return count, size
