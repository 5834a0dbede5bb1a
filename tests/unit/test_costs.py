"""Tests for append pricing."""

import pytest

from parcel_nfts.core.costs import (
    BYTES_PER_GB,
    calculate_cost,
    file_payment_key,
    payment_value,
    round_half_up,
)
from parcel_nfts.core.files import NamedBlob


class SizedBlob(NamedBlob):
    """A blob reporting a size without holding the bytes."""

    def __init__(self, name: str, size: int):
        super().__init__(name=name, data=b"")
        object.__setattr__(self, "_size", size)

    @property
    def size(self) -> int:
        return self._size


@pytest.mark.unit
class TestCalculateCost:

    def test_no_files_cost_nothing(self):
        assert calculate_cost([], 3, 50) == 0

    def test_per_file_cost(self):
        files = [NamedBlob(f"{i}.txt", b"x") for i in range(3)]
        assert calculate_cost(files, 3, 50) == 9.0

    def test_per_gigabyte_cost(self):
        assert calculate_cost([SizedBlob("big.bin", BYTES_PER_GB)], 3, 50) == 53.0
        assert calculate_cost([SizedBlob("half.bin", BYTES_PER_GB // 2)], 3, 50) == 28.0

    def test_rounded_to_three_places(self):
        assert calculate_cost([SizedBlob("f", 12345)], 0, 50) == 0.001

    def test_halves_round_up(self):
        assert calculate_cost([SizedBlob("f", BYTES_PER_GB // 16)], 0, 1) == 0.063

    def test_defaults_come_from_settings(self):
        assert calculate_cost([NamedBlob("a", b"x")]) == 3.0


@pytest.mark.unit
def test_payment_value():
    assert payment_value(6.0) == 6 * 10 ** 18
    assert payment_value(1.5) == 15 * 10 ** 17
    assert payment_value(0) == 0


@pytest.mark.unit
def test_file_payment_key():
    assert file_payment_key("0xNft", 4, "a.txt") == "paid-0xNft-4-a.txt"


@pytest.mark.unit
def test_round_half_up():
    assert round_half_up(12.5) == 13
    assert round_half_up(2.5) == 3
    assert round_half_up(2.49) == 2
