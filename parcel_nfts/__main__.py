"""
Allow the parcel_nfts package to be executed as a module.

This enables running the command line with:
    python -m parcel_nfts validate <directory>
    python -m parcel_nfts ledger show <namespace>
"""

from parcel_nfts.main import cli

if __name__ == "__main__":
    cli()
