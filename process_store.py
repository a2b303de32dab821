"""Process stores: processes from configuration or from an HTTP endpoint."""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

import aiohttp

from conducts import conduct_from_dict, target_from_dict
from constants import PROCESSES_CACHE_TTL, PROCESSES_FETCH_TIMEOUT
from models import Process

logger = logging.getLogger(__name__)


def process_from_dict(data: Dict[str, Any]) -> Process:
    """Parse a process definition."""
    if not isinstance(data, dict):
        raise ValueError(f"Invalid process: {data!r}")
    alias = data.get("alias")
    if not alias:
        raise ValueError("Process alias is required")
    return Process(
        alias=alias,
        is_disabled=bool(data.get("disabled", False)),
        condition=data.get("condition"),
        triggers=[target_from_dict(t) for t in data.get("triggers") or []],
        conducts=[conduct_from_dict(c) for c in data.get("conducts") or []],
    )


def processes_from_list(items: List[Dict[str, Any]]) -> List[Process]:
    """Parse process definitions, skipping invalid ones."""
    processes: List[Process] = []
    for item in items or []:
        try:
            processes.append(process_from_dict(item))
        except ValueError as e:
            logger.warning(f"Process skipped: {e}")
    return processes


class YamlProcessStore:
    """Processes declared in the configuration file."""

    def __init__(self, items: List[Dict[str, Any]]):
        self._processes = processes_from_list(items)
        logger.info(f"Loaded {len(self._processes)} process(es) from configuration")

    async def get_state_triggered(self) -> List[Process]:
        return [p for p in self._processes if p.triggers]


class HttpProcessStore:
    """
    Fetches processes as a JSON list from an HTTP endpoint.
    Results are cached for cache_ttl seconds.
    """

    def __init__(self, url: str, cache_ttl: float = PROCESSES_CACHE_TTL):
        self.url = url
        self.cache_ttl = cache_ttl
        self.session: Optional[aiohttp.ClientSession] = None
        self._cache: Optional[List[Process]] = None
        self._fetched_at = 0.0
        self._lock = asyncio.Lock()

    async def close(self):
        """Close HTTP session."""
        if self.session and not self.session.closed:
            await self.session.close()
        self.session = None

    async def get_state_triggered(self) -> List[Process]:
        processes = await self._get_all()
        return [p for p in processes if p.triggers]

    async def _get_all(self) -> List[Process]:
        async with self._lock:
            if self._cache is not None and time.monotonic() - self._fetched_at < self.cache_ttl:
                return self._cache

            if self.session is None or self.session.closed:
                self.session = aiohttp.ClientSession()
            logger.debug(f"Fetching processes from {self.url}")
            timeout = aiohttp.ClientTimeout(total=PROCESSES_FETCH_TIMEOUT)
            async with self.session.get(self.url, timeout=timeout) as resp:
                resp.raise_for_status()
                items = await resp.json()

            if not isinstance(items, list):
                raise ValueError(f"Unexpected processes response from {self.url}")

            self._cache = processes_from_list(items)
            self._fetched_at = time.monotonic()
            logger.info(f"Retrieved {len(self._cache)} process(es) from {self.url}")
            return self._cache
