"""
Pick the first reachable remote mirror site.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

import httpx

from mini_inject.domain.errors import RemoteUnavailableError

logger = logging.getLogger(__name__)

# Every CPAN mirror carries this file, so fetching it tells us the site is alive.
PROBE_PATH = "authors/01mailrc.txt.gz"


async def fetch_url(client: httpx.AsyncClient, url: str) -> Optional[bytes]:
    """
    GET ``url`` and return the body, or ``None`` if it could not be fetched.
    """
    try:
        response = await client.get(url)
        response.raise_for_status()
    except httpx.HTTPError as e:
        logger.debug(f"Fetching {url} failed: {e}")
        return None
    return response.content


async def select_remote_site(
    sites: Iterable[str],
    verbose: bool = False,
    timeout: float = 60.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """
    Try each site in order and return the first one that serves the probe
    file with a non-empty body.
    """
    async with httpx.AsyncClient(follow_redirects=True, timeout=timeout, transport=transport) as client:
        for site in sites:
            if not site.endswith("/"):
                site += "/"
            if verbose:
                logger.info(f"Testing site: {site}")
            else:
                logger.debug(f"Testing site: {site}")

            body = await fetch_url(client, site + PROBE_PATH)
            if body:
                if verbose:
                    logger.info(f"{site} selected.")
                return site

    raise RemoteUnavailableError("Unable to connect to any remote site")
