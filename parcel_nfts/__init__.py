"""
Parcel NFTs - resumable minting workflows for escrow-backed NFT collections.

This package provides the client-side workflow engine that:
- Validates collection manifests against the supplied file set
- Deploys collection contracts and mints escrow tokens for every item
- Uploads public images, metadata and private data, linking them across systems
- Appends new private assets to existing collections after collecting payment
- Records progress durably so interrupted runs resume without repeating paid work
"""

__version__ = "0.1.0"
__author__ = "Parcel NFTs Team"
