"""Shared HTTP helpers for the rubygems.org and AUR clients.

A thin wrapper around ``httpx.Client`` with standardised timeouts,
user-agent headers and error handling, so HTTP behaviour is consistent and
easy to patch in tests. Requests are blocking; a run issues them one at a
time.

Raises ``RegistryError`` (a subclass of ``Gem2ArchError``) on failures: an
unreachable registry makes every later decision unreliable, so it is fatal.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import httpx

from gem2arch import __version__
from gem2arch.exceptions import RegistryError

logger = logging.getLogger(__name__)

# Timeout for all registry HTTP requests (seconds).
DEFAULT_TIMEOUT: float = 30.0

# User-Agent sent with every request.
USER_AGENT: str = f"gem2arch/{__version__}"


def _client(timeout: float) -> httpx.Client:
    return httpx.Client(
        timeout=timeout,
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True,
    )


def fetch_json(
    url: str,
    *,
    params: dict[str, str] | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> dict[str, Any] | list[Any]:
    """Fetch a URL and parse the response as JSON.

    Raises:
        RegistryError: On HTTP errors, timeouts, or invalid JSON.
    """
    try:
        with _client(timeout) as client:
            resp = client.get(url, params=params)
            resp.raise_for_status()
            return resp.json()
    except httpx.TimeoutException as exc:
        raise RegistryError(f"Timeout fetching {url}") from exc
    except httpx.HTTPStatusError as exc:
        raise RegistryError(f"HTTP {exc.response.status_code} from {url}") from exc
    except (httpx.RequestError, ValueError) as exc:
        raise RegistryError(f"Request error for {url}: {exc}") from exc


def fetch_text(
    url: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    missing_ok: bool = False,
) -> str | None:
    """Fetch a URL and return the response body as text.

    Args:
        missing_ok: Return None instead of raising on HTTP 404.

    Raises:
        RegistryError: On HTTP errors or timeouts.
    """
    try:
        with _client(timeout) as client:
            resp = client.get(url)
            if missing_ok and resp.status_code == 404:
                logger.debug("Not found: %s", url)
                return None
            resp.raise_for_status()
            return resp.text
    except httpx.TimeoutException as exc:
        raise RegistryError(f"Timeout fetching {url}") from exc
    except httpx.HTTPStatusError as exc:
        raise RegistryError(f"HTTP {exc.response.status_code} from {url}") from exc
    except httpx.RequestError as exc:
        raise RegistryError(f"Request error for {url}: {exc}") from exc


def download(url: str, dest: Path, *, timeout: float = DEFAULT_TIMEOUT) -> Path:
    """Stream *url* into *dest* and return *dest*.

    Raises:
        RegistryError: On HTTP errors or timeouts. A partial file is removed.
    """
    dest.parent.mkdir(parents=True, exist_ok=True)
    try:
        with _client(timeout) as client, client.stream("GET", url) as resp:
            resp.raise_for_status()
            with dest.open("wb") as fh:
                for chunk in resp.iter_bytes():
                    fh.write(chunk)
    except httpx.HTTPStatusError as exc:
        dest.unlink(missing_ok=True)
        raise RegistryError(f"HTTP {exc.response.status_code} from {url}") from exc
    except (httpx.TimeoutException, httpx.RequestError) as exc:
        dest.unlink(missing_ok=True)
        raise RegistryError(f"Cannot download {url}: {exc}") from exc
    logger.debug("Downloaded %s to %s", url, dest)
    return dest
