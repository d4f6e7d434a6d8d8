"""
Capital catalog.

Loaded once from a data source and shared read-only afterwards.  Records
are validated with pydantic; the catalog itself enforces that it is
non-empty and that names are unique.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable, Iterator, Mapping

import pydantic
from pydantic import BaseModel, Field, field_validator

from .entities import Capital
from .errors import NotFound, ValidationError

if TYPE_CHECKING:
    from flightarcs.infrastructure.sources import CapitalSource

logger = logging.getLogger(__name__)


class CapitalRecord(BaseModel):
    """Wire shape of one capital: ``{name, coordinates: [lng, lat], description}``."""

    name: str = Field(..., min_length=1)
    coordinates: tuple[float, float]
    description: str = ""

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value

    @field_validator("coordinates")
    @classmethod
    def _check_range(cls, value: tuple[float, float]) -> tuple[float, float]:
        lng, lat = value
        if not -180.0 <= lng <= 180.0:
            raise ValueError(f"longitude {lng} outside [-180, 180]")
        if not -90.0 <= lat <= 90.0:
            raise ValueError(f"latitude {lat} outside [-90, 90]")
        return value

    def to_capital(self) -> Capital:
        return Capital(self.name, self.coordinates, self.description)


class CapitalCatalog:
    """Immutable, ordered set of capitals keyed by name."""

    def __init__(self, capitals: Iterable[Capital]):
        ordered = tuple(capitals)
        if not ordered:
            raise ValidationError("Capital catalog is empty")

        by_name: dict[str, Capital] = {}
        duplicates: list[str] = []
        for capital in ordered:
            if capital.name in by_name:
                duplicates.append(capital.name)
            by_name[capital.name] = capital
        if duplicates:
            raise ValidationError(f"Duplicate capital names: {sorted(set(duplicates))}")

        self._capitals = ordered
        self._by_name = by_name

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> "CapitalCatalog":
        capitals = []
        for idx, raw in enumerate(records):
            try:
                capitals.append(CapitalRecord.model_validate(raw).to_capital())
            except pydantic.ValidationError as exc:
                raise ValidationError(f"Invalid capital record #{idx}: {exc}") from exc
        return cls(capitals)

    @classmethod
    async def load(cls, source: "CapitalSource") -> "CapitalCatalog":
        """Fetch records from *source* and validate them.

        ``DataSourceError`` from the source propagates unchanged; retrying
        is the caller's decision.
        """
        records = await source.fetch()
        catalog = cls.from_records(records)
        logger.info("Loaded %d capitals from %s", len(catalog), source)
        return catalog

    def find(self, name: str) -> Capital:
        try:
            return self._by_name[name]
        except KeyError:
            raise NotFound(f"Capital not found: {name!r}") from None

    @property
    def first(self) -> Capital:
        return self._capitals[0]

    @property
    def names(self) -> list[str]:
        return [c.name for c in self._capitals]

    def __iter__(self) -> Iterator[Capital]:
        return iter(self._capitals)

    def __len__(self) -> int:
        return len(self._capitals)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name
