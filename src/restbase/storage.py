"""
Restbase - Storage facade.

Upload and public-URL resolution against /storage/<bucket>/ routes.
Raw Results are passed through; use envelope.decode_public_url() to
read the URL out of either response shape.
"""

from typing import Any, Mapping

from restbase.encoding import encode_multipart
from restbase.errors import ConfigurationError
from restbase.models import Result
from restbase.transport import Transport


class BucketApi:
    """Operations on one storage bucket."""

    def __init__(self, transport: Transport, api_base: str, bucket: str):
        self._transport = transport
        self.bucket = bucket
        self._base = f"{api_base.rstrip('/')}/storage/{bucket}"

    async def upload(
        self,
        path: str,
        file: Any,
        options: Mapping[str, Any] | None = None,
    ) -> Result:
        """
        Upload a file.

        Sends multipart fields path and file, plus one text field per option
        (e.g. cacheControl, upsert).
        """
        fields: dict[str, Any] = {"path": path, "file": file}
        for key, value in (options or {}).items():
            if key in fields:
                raise ConfigurationError(f"Upload option '{key}' collides with a reserved field")
            fields[key] = value
        body = encode_multipart(fields)
        return await self._transport.send("POST", f"{self._base}/upload", body=body)

    async def get_public_url(self, path: str) -> Result:
        return await self._transport.send(
            "GET", f"{self._base}/public-url", params=[("path", path)]
        )


class StorageFacade:
    def __init__(self, transport: Transport, api_base: str):
        self._transport = transport
        self._api_base = api_base

    def from_(self, bucket: str) -> BucketApi:
        if not bucket:
            raise ConfigurationError("A storage bucket name is required")
        return BucketApi(self._transport, self._api_base, bucket)
