"""Fetch/cache gateway — resolves an artifact reference to a local file.

Cache layout:
    <cache_dir>/<cache_key>/<basename of the URL>

The cache key defaults to the SHA-256 of the URL, so a hit check is a
single stat and is the same in every run.

Modes:
  offline  Cached buildpack. A hit is served without calling the
           transport at all; a miss is fatal.
  online   Every fetch goes to the source (transport, or a local copy for
           file:// URLs) and refreshes the cache entry.

Within a process, concurrent fetches of the same key are collapsed: one
caller populates, the others wait and reuse its result (or its error).
Across processes, an advisory file lock on the entry directory keeps
populates of one key from interleaving. Files are written to a temporary
name and renamed into place, so other processes never observe a partial
artifact.
"""

import hashlib
import logging
import os
import shutil
import tempfile
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlparse

from fasteners import InterProcessLock

from gobuildpack.core.logging import get_log
from gobuildpack.fetch.transport import HttpxTransport, Transport, redact_url
from gobuildpack.staging.errors import FetchError

logger = logging.getLogger(__name__)

_HASH_CHUNK = 1024 * 1024
_LOCK_FILENAME = ".lock"


@dataclass(frozen=True)
class ArtifactRef:
    url: str
    sha256: Optional[str] = None

    @property
    def filename(self) -> str:
        name = Path(unquote(urlparse(self.url).path)).name
        return name or "artifact"

    @property
    def is_local(self) -> bool:
        return urlparse(self.url).scheme == "file"

    @property
    def local_path(self) -> Path:
        return Path(unquote(urlparse(self.url).path))


@dataclass
class _Inflight:
    done: threading.Event = field(default_factory=threading.Event)
    path: Optional[Path] = None
    error: Optional[FetchError] = None


_INFLIGHT: dict[str, _Inflight] = {}
_INFLIGHT_LOCK = threading.Lock()


def default_cache_key(ref: ArtifactRef) -> str:
    return hashlib.sha256(ref.url.encode("utf-8")).hexdigest()


def file_sha256(path: Path) -> str:
    digest = hashlib.sha256()
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(_HASH_CHUNK), b""):
            digest.update(chunk)
    return digest.hexdigest()


class FetchGateway:
    def __init__(
        self,
        cache_dir: Path,
        transport: Optional[Transport] = None,
        offline: bool = False,
        log=None,
    ):
        self.cache_dir = Path(cache_dir)
        self.transport = transport or HttpxTransport()
        self.offline = offline
        self.log = log or get_log()

    def cache_path(self, ref: ArtifactRef, cache_key: Optional[str] = None) -> Path:
        return self.cache_dir / (cache_key or default_cache_key(ref)) / ref.filename

    def is_cached(self, ref: ArtifactRef, cache_key: Optional[str] = None) -> bool:
        return self.cache_path(ref, cache_key).is_file()

    def fetch(self, ref: ArtifactRef, cache_key: Optional[str] = None) -> Path:
        """Return a local path holding the artifact, raising FetchError."""
        target = self.cache_path(ref, cache_key)

        if self.offline:
            return self._serve_cached(ref, target)

        with _INFLIGHT_LOCK:
            inflight = _INFLIGHT.get(str(target))
            owner = inflight is None
            if owner:
                inflight = _INFLIGHT[str(target)] = _Inflight()

        if not owner:
            logger.debug("Waiting for concurrent fetch of %s", redact_url(ref.url))
            inflight.done.wait()
            if inflight.error is not None:
                raise inflight.error
            return inflight.path

        try:
            with _cache_entry_lock(target.parent):
                inflight.path = self._populate(ref, target)
            return inflight.path
        except FetchError as exc:
            inflight.error = exc
            raise
        except Exception as exc:
            inflight.error = FetchError(
                f"Failed to fetch {redact_url(ref.url)}: {exc}", url=ref.url
            )
            raise inflight.error from exc
        finally:
            inflight.done.set()
            with _INFLIGHT_LOCK:
                _INFLIGHT.pop(str(target), None)

    def _serve_cached(self, ref: ArtifactRef, target: Path) -> Path:
        if not target.is_file():
            raise FetchError(
                f"dependency {redact_url(ref.url)} not found in offline cache",
                url=ref.url,
            )
        self.log.info(f"Copy [{target}]")
        self._verify(ref, target)
        return target

    def _populate(self, ref: ArtifactRef, target: Path) -> Path:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".partial-", dir=target.parent)
        os.close(fd)
        tmp = Path(tmp_name)

        try:
            if ref.is_local:
                self.log.info(f"Copy [{ref.local_path}]")
                try:
                    shutil.copyfile(ref.local_path, tmp)
                except OSError as exc:
                    raise FetchError(
                        f"Failed to copy {ref.local_path}: {exc}", url=ref.url
                    ) from exc
            else:
                self.log.info(f"Download [{redact_url(ref.url)}]")
                self.transport.download(ref.url, tmp)

            self._verify(ref, tmp)
            os.replace(tmp, target)
        finally:
            tmp.unlink(missing_ok=True)

        logger.debug("Cached %s at %s", redact_url(ref.url), target)
        return target

    def _verify(self, ref: ArtifactRef, path: Path) -> None:
        if not ref.sha256:
            return
        actual = file_sha256(path)
        if actual != ref.sha256.lower():
            raise FetchError(
                f"dependency sha256 mismatch: expected {ref.sha256}, got {actual}",
                url=ref.url,
            )


def _cache_entry_lock(entry_dir: Path) -> InterProcessLock:
    """Advisory lock on one cache entry, shared with other staging processes."""
    entry_dir.mkdir(parents=True, exist_ok=True)
    return InterProcessLock(str(entry_dir / _LOCK_FILENAME))
