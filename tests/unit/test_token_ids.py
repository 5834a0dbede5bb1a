"""Tests for escrow token id encoding."""

import pytest

from parcel_nfts.core.token_ids import decode_token_id, encode_token_id


@pytest.mark.unit
def test_encode_left_aligns_utf8_bytes():
    assert encode_token_id("A") == 0x41 << (31 * 8)
    assert encode_token_id("TKabc") == int.from_bytes(b"TKabc" + b"\x00" * 27, "big")


@pytest.mark.unit
def test_decode_reverses_encode():
    assert decode_token_id(encode_token_id("TKy8jJ6xd2UxCKCz")) == "TKy8jJ6xd2UxCKCz"


@pytest.mark.unit
def test_zero_means_no_token():
    assert decode_token_id(0) is None


@pytest.mark.unit
def test_full_width_id():
    token_id = "x" * 32
    assert decode_token_id(encode_token_id(token_id)) == token_id


@pytest.mark.unit
def test_too_long_id_is_rejected():
    with pytest.raises(ValueError):
        encode_token_id("x" * 33)
