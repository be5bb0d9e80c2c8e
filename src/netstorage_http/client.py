"""
NetStorage HTTP API client.

One NetStorageClient is bound to one immutable Settings instance. Each verb
issues exactly one signed HTTP request (plus transport-level retries of
connection failures when http_retry > 0) and returns the classified result:
{"status": code} for plain responses or the decoded XML mapping for
stat/du/dir. create() additionally materializes the parent directories of
the target before uploading.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Union

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from .errors import NetStorageError, TransportError, ValidationError, is_not_found
from .materializer import PathMaterializer
from .models import Action, ActionRequest
from .payload import UploadSource, as_upload_source, run_io
from .request_builder import RequestBuilder, Signer
from .settings import Settings

__all__ = ["NetStorageClient"]

logger = logging.getLogger(__name__)

USER_AGENT = "netstorage-http/0.1.0"

# Failures where the request provably never reached the server
RETRYABLE_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout)


class NetStorageClient:
    """
    Async client for the NetStorage HTTP API.

    Usage:
        async with NetStorageClient(settings) as ns:
            await ns.create(b"...", 12345, "images/cat.png")
            listing = await ns.dir("/12345/images")

    Several clients with different settings can be used side by side; no
    state is shared between them and none is kept between calls.
    """

    retry_wait = wait_exponential(multiplier=1, min=1, max=10)

    def __init__(
        self,
        settings: Settings,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        signer: Optional[Signer] = None,
    ):
        """
        Initialize the client.

        Args:
            settings: Immutable configuration (host, key, transport options)
            http_client: Pre-built httpx.AsyncClient; one is created from
                settings when omitted (and then closed by aclose())
            signer: Signature function override, used by tests to pin time
                and nonce
        """
        self.settings = settings
        self._builder = RequestBuilder(settings, signer=signer)
        self._owns_http = http_client is None
        self._http = http_client or self._create_http_client()
        self._materializer = PathMaterializer(self, config=settings.describe())

    def _create_http_client(self) -> httpx.AsyncClient:
        options: Dict[str, Any] = {
            "timeout": httpx.Timeout(self.settings.http_timeout_s),
            "headers": {"User-Agent": USER_AGENT},
        }
        options.update(self.settings.transport_overrides)
        return httpx.AsyncClient(**options)

    async def _send_once(
        self,
        request: ActionRequest,
        content: Optional[UploadSource] = None,
    ) -> httpx.Response:
        # Signed per attempt so a retry never reuses a nonce
        prepared = self._builder.build(request)
        headers = dict(prepared.headers)
        body = None
        if content is not None:
            body = content.drain()
            if content.size is not None:
                headers["Content-Length"] = str(content.size)

        logger.debug("%s %s action=%s", prepared.method, prepared.url, request.action.value)
        return await self._http.request(prepared.method, prepared.url, headers=headers, content=body)

    async def _execute(
        self,
        request: ActionRequest,
        content: Optional[UploadSource] = None,
    ) -> Mapping[str, Any]:
        """
        Send one request and classify the response.

        Raises:
            TransportError: If no HTTP response was received
            ProtocolError: If the status is >= 300
            ParseError: If an XML body is malformed
        """
        # A drained body cannot be replayed, so uploads are never retried
        attempts = 1 if content is not None else self.settings.http_retry + 1
        retrying = AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=self.retry_wait,
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    response = await self._send_once(request, content)
        except httpx.TransportError as e:
            raise TransportError(f"Network error during {request.action.value} {request.target_path}: {e}") from e

        return self._builder.classify(response.status_code, response.content)

    async def upload(self, source: Any, path: str) -> Mapping[str, Any]:
        """
        Upload a payload to path. Parent directories must already exist.

        Args:
            source: bytes/str, binary file object, (async) iterable of bytes,
                or an UploadSource
            path: Absolute remote path of the file
        """
        request = ActionRequest(
            target_path=path,
            action=Action.UPLOAD,
            fields={"upload-type": "binary"},
            method="PUT",
        )
        return await self._execute(request, as_upload_source(source))

    async def download(self, path: str, destination: Any) -> Mapping[str, Any]:
        """
        Stream the file at path into destination.

        Args:
            path: Absolute remote path of the file
            destination: Binary writable; write() may be sync (run in a worker
                thread) or async

        Returns:
            {"status": code}
        """
        request = ActionRequest(target_path=path, action=Action.DOWNLOAD)
        prepared = self._builder.build(request)
        logger.debug("%s %s action=%s", prepared.method, prepared.url, request.action.value)

        try:
            async with self._http.stream(prepared.method, prepared.url, headers=dict(prepared.headers)) as response:
                if response.status_code >= 300:
                    body = await response.aread()
                    # Raises ProtocolError
                    self._builder.classify(response.status_code, body)

                async for chunk in response.aiter_bytes():
                    await run_io(destination.write, chunk)
                return {"status": response.status_code}
        except httpx.TransportError as e:
            raise TransportError(f"Network error during download {path}: {e}") from e

    async def stat(self, path: str) -> Mapping[str, Any]:
        return await self._execute(ActionRequest(target_path=path, action=Action.STAT))

    async def du(self, path: str) -> Mapping[str, Any]:
        return await self._execute(ActionRequest(target_path=path, action=Action.DU))

    async def dir(self, path: str) -> Mapping[str, Any]:
        return await self._execute(ActionRequest(target_path=path, action=Action.DIR))

    async def delete(self, path: str) -> Mapping[str, Any]:
        return await self._execute(ActionRequest(target_path=path, action=Action.DELETE, method="PUT"))

    async def mkdir(self, path: str) -> Mapping[str, Any]:
        return await self._execute(ActionRequest(target_path=path, action=Action.MKDIR, method="PUT"))

    async def rmdir(self, path: str) -> Mapping[str, Any]:
        return await self._execute(ActionRequest(target_path=path, action=Action.RMDIR, method="PUT"))

    async def rename(self, path_from: str, path_to: str) -> Mapping[str, Any]:
        request = ActionRequest(
            target_path=path_from,
            action=Action.RENAME,
            fields={"destination": path_to},
            method="PUT",
        )
        return await self._execute(request)

    async def symlink(self, target: str, link_path: str) -> Mapping[str, Any]:
        """Create a symlink at link_path pointing to target."""
        request = ActionRequest(
            target_path=link_path,
            action=Action.SYMLINK,
            fields={"target": target},
            method="PUT",
        )
        return await self._execute(request)

    async def mtime(self, path: str, when: datetime) -> Mapping[str, Any]:
        """
        Set the modification time of path.

        Raises:
            ValidationError: If when is not a datetime (no request is issued)
        """
        if not isinstance(when, datetime):
            raise ValidationError("The date has to be an instance of datetime")

        request = ActionRequest(
            target_path=path,
            action=Action.MTIME,
            fields={"mtime": int(when.timestamp())},
            method="PUT",
        )
        return await self._execute(request)

    async def file_exists(self, path: str) -> bool:
        """
        True if stat finds a file entry at path, False on 404.

        Raises:
            NetStorageError: Any stat failure other than 404
        """
        try:
            result = await self.stat(path)
        except NetStorageError as e:
            if is_not_found(e):
                return False
            raise

        entries = (result.get("stat") or {}).get("file")
        return bool(entries)

    async def create(
        self,
        source: Any,
        base_prefix: Union[str, int],
        target_path: str,
    ) -> Mapping[str, Any]:
        """
        Upload source to base_prefix/target_path, creating parent directories first.

        Directories are created parent first; ones that already exist are
        skipped. Directories created before a failure are left in place.

        Args:
            source: Upload body (see upload())
            base_prefix: cpcode the target lives under; may be empty
            target_path: File path relative to base_prefix

        Returns:
            The upload result

        Raises:
            NetStorageError: Annotated with phase "mkdir" or "upload"
            TypeError: If source cannot be uploaded (no request is issued)
        """
        # Unsupported sources fail before any directory is created
        upload_source = as_upload_source(source)
        target = await self._materializer.ensure_ancestors(base_prefix, target_path)
        try:
            return await self.upload(upload_source, target)
        except NetStorageError as e:
            raise e.annotate("upload", path=target, config=self.settings.describe())

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> NetStorageClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
