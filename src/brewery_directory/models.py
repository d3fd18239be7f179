"""Data models shared by the fetcher, aggregation engine and query façade."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

logger = logging.getLogger(__name__)

DEFAULT_BREWERY_TYPE = "Microbrewery"

_FEATURE_FLAGS = (
    "allows_visitors",
    "offers_tours",
    "beer_to_go",
    "has_merch",
    "dog_friendly",
    "outdoor_seating",
)


def normalize_key(value: str) -> str:
    """Return the lookup key for a free-text category value."""

    return value.lower().strip()


@dataclass(frozen=True, slots=True)
class SingleType:
    """A brewery classified under one type label."""

    label: str

    @property
    def grouping_key(self) -> str:
        return self.label.lower()

    @property
    def labels(self) -> Tuple[str, ...]:
        return (self.label,)

    def to_value(self) -> str:
        return self.label


@dataclass(frozen=True, slots=True)
class MultipleType:
    """A brewery classified under several type labels at once."""

    members: Tuple[str, ...]

    @property
    def grouping_key(self) -> str:
        # One bucket per combination, not one per member.
        return ", ".join(self.members).lower()

    @property
    def labels(self) -> Tuple[str, ...]:
        return self.members

    def to_value(self) -> List[str]:
        return list(self.members)


BreweryType = Union[SingleType, MultipleType]


def parse_brewery_type(value: Any) -> Optional[BreweryType]:
    """Convert a raw ``type`` column (string or list of strings) to a BreweryType.

    Anything else yields ``None`` so downstream code can skip the record's type.
    """

    if isinstance(value, str):
        return SingleType(value)
    if isinstance(value, (list, tuple)):
        return MultipleType(tuple(str(member) for member in value))
    return None


@dataclass(frozen=True, slots=True)
class Beer:
    name: str
    style: str = ""
    abv: str = ""
    availability: str = ""

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Beer":
        return cls(
            name=str(row.get("name") or ""),
            style=str(row.get("style") or ""),
            abv=str(row.get("abv") or ""),
            availability=str(row.get("availability") or ""),
        )

    def to_row(self) -> Dict[str, str]:
        return {"name": self.name, "style": self.style, "abv": self.abv, "availability": self.availability}


@dataclass(frozen=True, slots=True)
class ExternalRating:
    """Rating summary pulled from an external review provider."""

    rating: Optional[float] = None
    review_count: Optional[int] = None
    last_fetched: Optional[str] = None
    place_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class BreweryRecord:
    """One brewery as stored in the ``breweries`` table."""

    id: str
    name: str
    slug: str
    type: Optional[BreweryType] = SingleType(DEFAULT_BREWERY_TYPE)
    description: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    county: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    social_media: Dict[str, str] = field(default_factory=dict)
    hours: Dict[str, str] = field(default_factory=dict)
    amenities: Tuple[str, ...] = ()
    allows_visitors: bool = False
    offers_tours: bool = False
    beer_to_go: bool = False
    has_merch: bool = False
    dog_friendly: bool = False
    outdoor_seating: bool = False
    food: Optional[str] = None
    other_drinks: Optional[str] = None
    parking: Optional[str] = None
    memberships: Tuple[Any, ...] = ()
    special_events: Tuple[str, ...] = ()
    awards: Tuple[str, ...] = ()
    certifications: Tuple[str, ...] = ()
    logo: Optional[str] = None
    featured: bool = False
    opened_date: Optional[str] = None
    last_updated: Optional[str] = None
    rating: ExternalRating = field(default_factory=ExternalRating)
    beers: Tuple[Beer, ...] = ()

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def type_labels(self) -> Tuple[str, ...]:
        return self.type.labels if self.type is not None else ()

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "BreweryRecord":
        """Build a record from a database row (snake_case columns, nested ``beers``)."""

        raw_type = row.get("type")
        brewery_type = parse_brewery_type(raw_type or DEFAULT_BREWERY_TYPE)
        if brewery_type is None:
            logger.warning("Brewery %s has an unsupported type value %r", row.get("id"), raw_type)

        beers = tuple(Beer.from_row(beer) for beer in row.get("beers") or () if isinstance(beer, Mapping))
        flags = {name: bool(row.get(name) or False) for name in _FEATURE_FLAGS}

        return cls(
            id=str(row["id"]),
            name=str(row.get("name") or ""),
            slug=str(row.get("slug") or ""),
            type=brewery_type,
            description=row.get("description"),
            street=row.get("street"),
            city=row.get("city"),
            state=row.get("state"),
            zip=row.get("zip"),
            county=row.get("county"),
            latitude=_optional_float(row.get("latitude")),
            longitude=_optional_float(row.get("longitude")),
            phone=row.get("phone"),
            website=row.get("website"),
            social_media=dict(row.get("social_media") or {}),
            hours=dict(row.get("hours") or {}),
            amenities=tuple(row.get("amenities") or ()),
            food=row.get("food"),
            other_drinks=row.get("other_drinks"),
            parking=row.get("parking"),
            memberships=tuple(row.get("memberships") or ()),
            special_events=tuple(row.get("special_events") or ()),
            awards=tuple(row.get("awards") or ()),
            certifications=tuple(row.get("certifications") or ()),
            logo=row.get("logo"),
            featured=bool(row.get("featured") or False),
            opened_date=row.get("opened_date"),
            last_updated=row.get("updated_at"),
            rating=ExternalRating(
                rating=_optional_float(row.get("google_rating")),
                review_count=_optional_int(row.get("google_rating_count")),
                last_fetched=row.get("google_reviews_last_updated"),
                place_id=row.get("place_id"),
            ),
            beers=beers,
            **flags,
        )

    def to_row(self) -> Dict[str, Any]:
        """Inverse of :meth:`from_row`, using JSON-safe primitives only."""

        row: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "type": self.type.to_value() if self.type is not None else None,
            "description": self.description,
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "zip": self.zip,
            "county": self.county,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "phone": self.phone,
            "website": self.website,
            "social_media": dict(self.social_media),
            "hours": dict(self.hours),
            "amenities": list(self.amenities),
            "food": self.food,
            "other_drinks": self.other_drinks,
            "parking": self.parking,
            "memberships": list(self.memberships),
            "special_events": list(self.special_events),
            "awards": list(self.awards),
            "certifications": list(self.certifications),
            "logo": self.logo,
            "featured": self.featured,
            "opened_date": self.opened_date,
            "updated_at": self.last_updated,
            "google_rating": self.rating.rating,
            "google_rating_count": self.rating.review_count,
            "google_reviews_last_updated": self.rating.last_fetched,
            "place_id": self.rating.place_id,
            "beers": [beer.to_row() for beer in self.beers],
        }
        for name in _FEATURE_FLAGS:
            row[name] = getattr(self, name)
        return row


def records_from_rows(rows: Iterable[Any]) -> List[BreweryRecord]:
    """Convert database rows to records, skipping anything that is not a mapping."""

    records: List[BreweryRecord] = []
    for row in rows:
        if not isinstance(row, Mapping):
            logger.warning("Skipping malformed brewery row of type %s", type(row).__name__)
            continue
        records.append(BreweryRecord.from_row(row))
    return records


@dataclass(frozen=True, slots=True)
class SiteStatistics:
    total_breweries: int
    total_cities: int
    total_counties: int
    breweries_by_type: Dict[str, int]
    breweries_by_county: Dict[str, int]
    average_breweries_per_city: float
    newest_brewery: Optional[str]
    oldest_brewery: Optional[str]
    last_updated: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalBreweries": self.total_breweries,
            "totalCities": self.total_cities,
            "totalCounties": self.total_counties,
            "breweriesByType": dict(self.breweries_by_type),
            "breweriesByCounty": dict(self.breweries_by_county),
            "averageBreweriesPerCity": self.average_breweries_per_city,
            "newestBrewery": self.newest_brewery,
            "oldestBrewery": self.oldest_brewery,
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SiteStatistics":
        return cls(
            total_breweries=int(data["totalBreweries"]),
            total_cities=int(data["totalCities"]),
            total_counties=int(data["totalCounties"]),
            breweries_by_type=dict(data.get("breweriesByType") or {}),
            breweries_by_county=dict(data.get("breweriesByCounty") or {}),
            average_breweries_per_city=float(data["averageBreweriesPerCity"]),
            newest_brewery=data.get("newestBrewery"),
            oldest_brewery=data.get("oldestBrewery"),
            last_updated=str(data["lastUpdated"]),
        )


GroupingIndex = Dict[str, Tuple[BreweryRecord, ...]]


@dataclass(frozen=True, slots=True)
class ProcessedBreweryData:
    """Everything the page generators need, computed in one pass.

    Instances are shared by every reader for the lifetime of a cache entry and
    must never be mutated; a refresh builds a new instance.
    """

    breweries: Tuple[BreweryRecord, ...]
    by_city: GroupingIndex
    by_county: GroupingIndex
    by_type: GroupingIndex
    by_amenity: GroupingIndex
    cities: Tuple[str, ...]
    counties: Tuple[str, ...]
    amenities: Tuple[str, ...]
    types: Tuple[str, ...]
    stats: SiteStatistics


def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
