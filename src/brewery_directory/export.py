"""CSV export of brewery records."""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Iterable, List

from .models import BreweryRecord
from .utils import slugify

logger = logging.getLogger(__name__)

EXPORT_FIELDS = (
    "id",
    "name",
    "slug",
    "type",
    "street",
    "city",
    "state",
    "zip",
    "county",
    "latitude",
    "longitude",
    "phone",
    "website",
    "amenities",
    "opened_date",
    "beer_count",
    "city_slug",
)


def as_row(brewery: BreweryRecord) -> List[str]:
    """Return the brewery as a CSV row using primitive types."""

    return [
        brewery.id,
        brewery.name,
        brewery.slug,
        ";".join(brewery.type_labels),
        brewery.street or "",
        brewery.city or "",
        brewery.state or "",
        brewery.zip or "",
        brewery.county or "",
        "" if brewery.latitude is None else f"{brewery.latitude:.6f}",
        "" if brewery.longitude is None else f"{brewery.longitude:.6f}",
        brewery.phone or "",
        brewery.website or "",
        ";".join(brewery.amenities),
        brewery.opened_date or "",
        str(len(brewery.beers)),
        slugify(brewery.city) if brewery.city else "",
    ]


def write_to_csv(breweries: Iterable[BreweryRecord], path: str | Path) -> int:
    """Write breweries to ``path`` and return the number of rows written."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    count = 0

    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(EXPORT_FIELDS)
        for brewery in breweries:
            writer.writerow(as_row(brewery))
            count += 1

    logger.info("Wrote %d rows to %s", count, path)
    return count
