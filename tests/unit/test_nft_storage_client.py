"""Tests for the nft.storage client."""

import httpx
import pytest

from parcel_nfts.core.files import NamedBlob
from parcel_nfts.integrations.nft_storage_client import NFTStorageClient


def make_client(handler, api_key="secret-key"):
    return NFTStorageClient(
        api_key=api_key,
        api_url="https://api.nft.storage/",
        gateway_url="https://nftstorage.link/ipfs/",
        timeout=5,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.unit
class TestNFTStorageClient:

    @pytest.mark.asyncio
    async def test_store_directory_uploads_every_file(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"ok": True, "value": {"cid": "bafyroot"}})

        client = make_client(handler)
        cid = await client.store_directory([
            NamedBlob("0.png", b"first image", "image/png"),
            NamedBlob("1.png", b"second image", "image/png"),
        ])

        assert cid == "bafyroot"
        assert len(requests) == 1
        request = requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://api.nft.storage/upload"
        assert request.headers["Authorization"] == "Bearer secret-key"
        body = request.read()
        assert b'filename="0.png"' in body
        assert b'filename="1.png"' in body
        assert b"second image" in body

    @pytest.mark.asyncio
    async def test_no_authorization_without_key(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json={"ok": True, "value": {"cid": "bafy"}})

        await make_client(handler, api_key="").store_directory([NamedBlob("0", b"{}")])
        assert seen["auth"] is None

    @pytest.mark.asyncio
    async def test_http_errors_are_raised(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json={"ok": False, "error": {"message": "down"}})

        with pytest.raises(httpx.HTTPStatusError):
            await make_client(handler).store_directory([NamedBlob("0", b"{}")])

    @pytest.mark.asyncio
    async def test_missing_cid_is_an_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"ok": False})

        with pytest.raises(ValueError):
            await make_client(handler).store_directory([NamedBlob("0", b"{}")])

    def test_link_has_trailing_slash(self):
        client = make_client(lambda request: httpx.Response(200))
        assert client.link("bafyroot") == "https://nftstorage.link/ipfs/bafyroot/"
