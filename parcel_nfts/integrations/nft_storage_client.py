"""
NFT.Storage Client

Stores public collection files (images and metadata) on IPFS through the
nft.storage HTTP API. A batch of files is uploaded as one directory and
addressed by the directory's content identifier.
"""

import logging
from typing import Dict, Optional, Sequence

import httpx

from parcel_nfts.core.files import NamedBlob
from parcel_nfts.integrations.base import BlobStore

logger = logging.getLogger(__name__)


class NFTStorageClient(BlobStore):
    """Client for uploading directories to nft.storage."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        gateway_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the nft.storage client.

        Args:
            api_key: nft.storage API token
            api_url: Base URL of the nft.storage API
            gateway_url: IPFS gateway used to build public links
            timeout: Upload timeout in seconds
            transport: Optional httpx transport, used by tests
        """
        from parcel_nfts.config import settings

        self.api_key = api_key if api_key is not None else settings.storage.nft_storage_api_key
        self.api_url = (api_url or settings.storage.nft_storage_api_url).rstrip("/")
        self.gateway_url = (gateway_url or settings.storage.nft_storage_gateway_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.storage.upload_timeout
        self._transport = transport

    def _get_headers(self) -> Dict[str, str]:
        headers = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def store_directory(self, files: Sequence[NamedBlob]) -> str:
        """
        Upload the files as a single directory.

        Returns:
            The content identifier (CID) of the directory.

        Raises:
            httpx.HTTPStatusError: If the API rejects the upload.
            ValueError: If the response carries no CID.
        """
        multipart = [
            ("file", (f.name, f.data, f.content_type)) for f in files
        ]
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(
                f"{self.api_url}/upload",
                files=multipart,
                headers=self._get_headers(),
            )
            response.raise_for_status()
            result = response.json()

        cid = (result.get("value") or {}).get("cid")
        if not result.get("ok") or not cid:
            raise ValueError(f"nft.storage upload returned no CID: {result}")

        logger.info(f"NFTStorageClient: stored {len(files)} files as {cid}")
        return cid

    def link(self, cid: str) -> str:
        return f"{self.gateway_url}/{cid}/"
