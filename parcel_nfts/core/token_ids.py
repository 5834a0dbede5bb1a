"""
Conversion between escrow token ids and the uint256 values stored on chain.

The collection contract maps each NFT to an escrow token id. The id's UTF-8
bytes are written left-aligned into 32 bytes and read as a big-endian
integer; zero means the NFT has no escrow token yet.
"""

from typing import Optional

TOKEN_ID_BYTES = 32


def encode_token_id(token_id: str) -> int:
    raw = token_id.encode("utf-8")
    if len(raw) > TOKEN_ID_BYTES:
        raise ValueError(f"token id {token_id!r} does not fit in {TOKEN_ID_BYTES} bytes")
    return int.from_bytes(raw.ljust(TOKEN_ID_BYTES, b"\x00"), "big")


def decode_token_id(value: int) -> Optional[str]:
    if value == 0:
        return None
    raw = value.to_bytes(TOKEN_ID_BYTES, "big").rstrip(b"\x00")
    return raw.decode("utf-8")
