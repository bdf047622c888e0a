"""Network transports for the fetch gateway.

The gateway only needs ``download(url, dest)``. HttpxTransport is the real
one; tests substitute a transport that records or refuses calls, which is
how "no network traffic when cached" is checked mechanically.
"""

import logging
from pathlib import Path
from typing import Optional, Protocol
from urllib.parse import urlparse, urlunparse

import httpx

from gobuildpack.staging.errors import FetchError

logger = logging.getLogger(__name__)

# Toolchain tarballs are ~120 MB; allow slow mirrors.
DOWNLOAD_TIMEOUT = httpx.Timeout(30.0, read=300.0)


class Transport(Protocol):
    def download(self, url: str, dest: Path) -> None:
        """Write the body at url to dest, raising FetchError on failure."""


def redact_url(url: str) -> str:
    """Return a URL safe to write into staging output.

    Masks embedded credentials while preserving host/path context.
    """
    parsed = urlparse(url)
    if parsed.username is None:
        return url

    host = parsed.hostname or ""
    if not host:
        return url

    port = f":{parsed.port}" if parsed.port else ""
    auth = f"{parsed.username}:***@" if parsed.password is not None else "***@"
    return urlunparse(parsed._replace(netloc=f"{auth}{host}{port}"))


class HttpxTransport:
    """Streams downloads to disk with httpx.

    Proxy settings (HTTP_PROXY, HTTPS_PROXY, NO_PROXY) are honoured through
    httpx's trust_env. Redirects are followed; no retries.
    """

    def __init__(
        self,
        timeout: httpx.Timeout = DOWNLOAD_TIMEOUT,
        client: Optional[httpx.Client] = None,
    ):
        self._timeout = timeout
        self._client = client

    def download(self, url: str, dest: Path) -> None:
        safe_url = redact_url(url)
        client = self._client or httpx.Client(
            timeout=self._timeout,
            follow_redirects=True,
        )
        try:
            with client.stream("GET", url) as response:
                response.raise_for_status()
                with open(dest, "wb") as fh:
                    for chunk in response.iter_bytes():
                        fh.write(chunk)
        except httpx.HTTPStatusError as exc:
            raise FetchError(
                f"Failed to download {safe_url}: HTTP {exc.response.status_code}",
                url=url,
            ) from exc
        except httpx.HTTPError as exc:
            raise FetchError(f"Failed to download {safe_url}: {exc}", url=url) from exc
        except OSError as exc:
            raise FetchError(f"Failed to write {dest}: {exc}", url=url) from exc
        finally:
            if self._client is None:
                client.close()

        logger.debug("Downloaded %s to %s", safe_url, dest)
