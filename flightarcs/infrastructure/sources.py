"""
Capital data sources.

Each source returns the raw record list (``{name, coordinates,
description}`` mappings); validation happens in ``CapitalCatalog``.
Transport and decoding failures are reported as ``DataSourceError`` and
never retried here.
"""

from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional, Sequence

import httpx

from flightarcs.domain.errors import DataSourceError

logger = logging.getLogger(__name__)

Record = dict[str, Any]


class CapitalSource(ABC):
    @abstractmethod
    async def fetch(self) -> list[Record]: ...


class HttpCapitalSource(CapitalSource):
    """GET a JSON array of capital records."""

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url
        self.timeout = timeout
        self._client = client

    async def fetch(self) -> list[Record]:
        try:
            if self._client is not None:
                resp = await self._client.get(self.url, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    resp = await client.get(self.url)
            resp.raise_for_status()
            payload = resp.json()
        except httpx.HTTPError as exc:
            raise DataSourceError(f"Could not fetch capitals from {self.url}: {exc}") from exc
        except ValueError as exc:
            raise DataSourceError(f"Invalid JSON from {self.url}: {exc}") from exc
        return _expect_records(payload, self.url)

    def __str__(self) -> str:
        return self.url


class FileCapitalSource(CapitalSource):
    """Read a JSON array of capital records from disk."""

    def __init__(self, path: Path):
        self.path = Path(path)

    async def fetch(self) -> list[Record]:
        try:
            text = await asyncio.to_thread(self.path.read_text, encoding="utf-8")
            payload = json.loads(text)
        except OSError as exc:
            raise DataSourceError(f"Could not read {self.path}: {exc}") from exc
        except ValueError as exc:
            raise DataSourceError(f"Invalid JSON in {self.path}: {exc}") from exc
        return _expect_records(payload, str(self.path))

    def __str__(self) -> str:
        return str(self.path)


class StaticCapitalSource(CapitalSource):
    """Records supplied in memory."""

    def __init__(self, records: Sequence[Record]):
        self.records = [dict(r) for r in records]

    async def fetch(self) -> list[Record]:
        return [dict(r) for r in self.records]

    def __str__(self) -> str:
        return f"<{len(self.records)} static records>"


def build_source(
    url: Optional[str], path: Path, timeout: float = 10.0
) -> CapitalSource:
    if url:
        return HttpCapitalSource(url, timeout=timeout)
    return FileCapitalSource(path)


def _expect_records(payload: Any, origin: str) -> list[Record]:
    if not isinstance(payload, list):
        raise DataSourceError(
            f"Expected a JSON array of capitals from {origin}, got {type(payload).__name__}"
        )
    return payload
