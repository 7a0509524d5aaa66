from __future__ import annotations

import asyncio
import ipaddress
import mimetypes
import re
import time
from dataclasses import dataclass
from typing import Optional, Sequence
from urllib.parse import unquote, urlparse

import httpx

from bureau_intake.config import StorageConfig
from bureau_intake.observability import IntakeObserver, NullObserver
from bureau_intake.storage import MediaStorage

MAX_REDIRECTS = 5

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class AssetTransferError(RuntimeError):
    pass


@dataclass
class DownloadResult:
    content: bytes
    content_type: Optional[str]
    size_bytes: int
    url: str


def filename_from_url(url: str) -> str | None:
    path = urlparse(url).path
    segment = unquote(path.rsplit("/", 1)[-1]) if path else ""
    cleaned = _UNSAFE_FILENAME_CHARS.sub("-", segment).strip("-.")
    return cleaned or None


def _suffixed(name: str, count: int) -> str:
    stem, dot, ext = name.rpartition(".")
    if dot and stem:
        return f"{stem}-{count}.{ext}"
    return f"{name}-{count}"


def unique_filenames(urls: Sequence[str]) -> list[str | None]:
    """Derive one filename per URL; repeats get a positional suffix (``image-1.jpg``)."""
    used: set[str] = set()
    names: list[str | None] = []
    for url in urls:
        name = filename_from_url(url)
        if name is None:
            names.append(None)
            continue
        candidate = name
        count = 0
        while candidate.lower() in used:
            count += 1
            candidate = _suffixed(name, count)
        used.add(candidate.lower())
        names.append(candidate)
    return names


def fallback_filename(category: str, index: int, content_type: Optional[str]) -> str:
    ext = mimetypes.guess_extension(content_type or "") or ".bin"
    return f"{category}-{int(time.time() * 1000)}-{index}{ext}"


class AssetMirror:
    """
    Download externally hosted files and re-host them under the client's prefix.

    Every file is independent: a failed fetch or upload drops that URL from the
    result and leaves the others untouched.
    """

    def __init__(
        self,
        storage: MediaStorage,
        *,
        timeout_seconds: float = 15.0,
        max_bytes: int = 25 * 1024 * 1024,
        observer: IntakeObserver | None = None,
    ) -> None:
        self.storage = storage
        self.timeout_seconds = timeout_seconds
        self.max_bytes = max_bytes
        self.observer = observer or NullObserver()

    @classmethod
    def from_config(cls, config: StorageConfig, *, observer: IntakeObserver | None = None) -> "AssetMirror":
        return cls(
            MediaStorage(config),
            timeout_seconds=config.timeout_seconds,
            max_bytes=config.max_bytes,
            observer=observer,
        )

    async def mirror(self, *, client_id: object, category: str, urls: Sequence[str]) -> list[str]:
        filenames = unique_filenames(urls)
        results = await asyncio.gather(
            *(
                self._mirror_one(
                    client_id=client_id,
                    category=category,
                    url=url,
                    index=index,
                    filename=filenames[index],
                )
                for index, url in enumerate(urls)
            )
        )
        mirrored: list[str] = []
        for url in results:
            if url and url not in mirrored:
                mirrored.append(url)
        return mirrored

    async def _mirror_one(
        self,
        *,
        client_id: object,
        category: str,
        url: str,
        index: int,
        filename: str | None,
    ) -> str | None:
        try:
            download = await self._download(url)
            if not filename:
                filename = fallback_filename(category, index, download.content_type)
            key = self.storage.build_key(client_id=client_id, category=category, filename=filename)
            await asyncio.to_thread(
                self.storage.upload_bytes,
                key=key,
                data=download.content,
                content_type=download.content_type or mimetypes.guess_type(filename)[0],
            )
            return self.storage.resolve_url(key)
        except (httpx.HTTPError, AssetTransferError) as exc:
            self.observer.asset_skipped(url, str(exc) or type(exc).__name__, category=category)
        except Exception as exc:  # noqa: BLE001
            self.observer.asset_skipped(url, f"{type(exc).__name__}: {exc}", category=category)
        return None

    async def _download(self, url: str) -> DownloadResult:
        timeout = httpx.Timeout(self.timeout_seconds, read=self.timeout_seconds)
        # Redirects are followed by hand so every hop passes the public-host check.
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=False) as client:
            current = url
            for _ in range(MAX_REDIRECTS + 1):
                await self._assert_fetchable(current)
                async with client.stream("GET", current, headers={"Accept": "*/*"}) as resp:
                    if resp.is_redirect:
                        location = resp.headers.get("location")
                        if not location:
                            raise AssetTransferError("redirect_without_location")
                        current = str(resp.url.join(location))
                        continue

                    resp.raise_for_status()
                    data = bytearray()
                    async for chunk in resp.aiter_bytes():
                        data.extend(chunk)
                        if len(data) > self.max_bytes:
                            raise AssetTransferError("media_too_large")

                    content_type = resp.headers.get("content-type")
                    if content_type:
                        content_type = content_type.split(";")[0].strip()
                    return DownloadResult(
                        content=bytes(data),
                        content_type=content_type or None,
                        size_bytes=len(data),
                        url=str(resp.url),
                    )
        raise AssetTransferError("too_many_redirects")

    async def _assert_fetchable(self, url: str) -> None:
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https"):
            raise AssetTransferError("unsupported_scheme")
        if not parsed.hostname:
            raise AssetTransferError("invalid_url")
        await self._assert_public_hostname(parsed.hostname)

    async def _assert_public_hostname(self, hostname: str) -> None:
        loop = asyncio.get_running_loop()
        try:
            infos = await loop.getaddrinfo(hostname, None)
        except OSError as exc:
            raise AssetTransferError(f"dns_lookup_failed:{hostname}") from exc
        for _, _, _, _, sockaddr in infos:
            ip = ipaddress.ip_address(str(sockaddr[0]).split("%", 1)[0])
            if ip.is_private or ip.is_loopback or ip.is_reserved or ip.is_link_local or ip.is_multicast:
                raise AssetTransferError("blocked_private_network")
