# app/services/walrus_service.py
"""
Walrus blob-store adapter. Stores event images and builds their public URLs.

Publisher:  PUT  {WALRUS_PUBLISHER_URL}/v1/store?epochs=N   (raw bytes in, blob ID out)
Aggregator: GET  {WALRUS_AGGREGATOR_URL}/v1/{blob_id}
"""

from typing import Optional

import httpx

from app.config import settings
from app.exceptions import BlobStoreError, InvalidImageError
from app.utils.logger import get_logger

logger = get_logger(__name__)

# Leading bytes of every accepted image format
IMAGE_SIGNATURES = {
    "jpg":  bytes([0xFF, 0xD8, 0xFF]),
    "png":  bytes([0x89, 0x50, 0x4E, 0x47]),
    "gif":  bytes([0x47, 0x49, 0x46]),
    "webp": bytes([0x52, 0x49, 0x46, 0x46]),
}


def validate_image_file(data: bytes, max_size_mb: float = 10) -> str:
    """
    Reject oversize buffers and anything that is not JPG/PNG/GIF/WebP.
    Returns the detected image type.
    """
    size_mb = len(data) / (1024 * 1024)
    if size_mb > max_size_mb:
        raise InvalidImageError(f"File too large: {size_mb:.2f}MB (max: {max_size_mb}MB)")

    for image_type, signature in IMAGE_SIGNATURES.items():
        if data.startswith(signature):
            logger.debug(f"Valid image detected: {image_type}")
            return image_type

    raise InvalidImageError("Invalid image file format (only JPG, PNG, GIF, WebP allowed)")


class WalrusService:
    def __init__(self, publisher_url: str, aggregator_url: str, epochs: int = 5,
                 max_size_mb: float = 10,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.publisher_url = publisher_url.rstrip("/")
        self.aggregator_url = aggregator_url.rstrip("/")
        self.epochs = epochs
        self.max_size_mb = max_size_mb
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=None)

    def get_url(self, blob_id: str) -> str:
        return f"{self.aggregator_url}/v1/{blob_id}"

    async def upload(self, data: bytes) -> str:
        """Store raw bytes and return the blob ID Walrus assigned."""
        url = f"{self.publisher_url}/v1/store"
        try:
            async with self._client() as client:
                response = await client.put(
                    url,
                    params={"epochs": self.epochs},
                    content=data,
                    headers={"Content-Type": "application/octet-stream"},
                )
        except httpx.HTTPError as e:
            logger.error(f"Walrus upload error: {e}")
            raise BlobStoreError(f"Walrus upload failed: {e}") from e

        if not response.is_success:
            logger.error(f"Walrus upload returned HTTP {response.status_code}")
            raise BlobStoreError(f"Walrus upload failed: {response.reason_phrase}")

        try:
            body = response.json()
        except ValueError as e:
            raise BlobStoreError("Walrus upload returned invalid JSON") from e

        blob_id = (
            ((body.get("newlyCreated") or {}).get("blobObject") or {}).get("blobId")
            or (body.get("alreadyCertified") or {}).get("blobId")
        )
        if not blob_id:
            raise BlobStoreError("No blob ID returned from Walrus")

        logger.info(f"File uploaded to Walrus: {blob_id} ({len(data)} bytes)")
        return blob_id

    async def blob_exists(self, blob_id: str) -> bool:
        """HEAD probe against the aggregator. Network failures count as missing."""
        try:
            async with self._client() as client:
                response = await client.head(self.get_url(blob_id))
            return response.is_success
        except httpx.HTTPError as e:
            logger.error(f"Error checking blob existence for {blob_id}: {e}")
            return False

    async def download(self, blob_id: str) -> bytes:
        try:
            async with self._client() as client:
                response = await client.get(self.get_url(blob_id))
        except httpx.HTTPError as e:
            logger.error(f"Walrus download error for {blob_id}: {e}")
            raise BlobStoreError(f"Failed to download from Walrus: {e}") from e

        if not response.is_success:
            raise BlobStoreError(f"Failed to download from Walrus: {response.reason_phrase}")
        return response.content

    async def upload_image(self, data: bytes) -> str:
        validate_image_file(data, self.max_size_mb)
        return await self.upload(data)


def create_walrus_service() -> WalrusService:
    return WalrusService(
        publisher_url=settings.WALRUS_PUBLISHER_URL,
        aggregator_url=settings.WALRUS_AGGREGATOR_URL,
        epochs=settings.WALRUS_EPOCHS,
        max_size_mb=settings.MAX_IMAGE_SIZE_MB,
    )
