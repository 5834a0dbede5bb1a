"""Tests for chain id to network mapping."""

import pytest

from parcel_nfts.core.networks import MAINNET, TESTNET, network_for_chain_id


@pytest.mark.unit
@pytest.mark.parametrize(
    "chain_id,expected",
    [
        (0xA516, MAINNET),
        (0xA515, TESTNET),
        (1, None),
        (1337, None),
    ],
)
def test_default_chain_ids(chain_id, expected):
    assert network_for_chain_id(chain_id) == expected


@pytest.mark.unit
def test_explicit_chain_ids():
    assert network_for_chain_id(1337, mainnet_chain_id=1, testnet_chain_ids=[1337]) == TESTNET
    assert network_for_chain_id(1, mainnet_chain_id=1, testnet_chain_ids=[1337]) == MAINNET
    assert network_for_chain_id(0xA515, mainnet_chain_id=1, testnet_chain_ids=[]) is None
