"""Configuration objects for the brewery directory."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

DEFAULT_TABLE = "breweries"
DEFAULT_SELECT = "*,beers(*)"
DEFAULT_ORDER = "name.asc"
DEFAULT_CACHE_TAG = "brewery-data"
DEFAULT_NEARBY_RADIUS_MILES = 10.0

URL_ENV_VARS = ("NEXT_PUBLIC_SUPABASE_URL", "SUPABASE_URL")
ANON_KEY_ENV_VARS = ("NEXT_PUBLIC_SUPABASE_ANON_KEY", "SUPABASE_ANON_KEY")


@dataclass(slots=True)
class SupabaseSettings:
    """Where and how the raw brewery rows are fetched."""

    url: Optional[str] = None
    anon_key: Optional[str] = None
    table: str = DEFAULT_TABLE
    select: str = DEFAULT_SELECT
    order: str = DEFAULT_ORDER
    request_timeout: float = 30.0
    extra_headers: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides: Any) -> "SupabaseSettings":
        env = os.environ if environ is None else environ
        values: Dict[str, Any] = {
            "url": _first_env(env, URL_ENV_VARS),
            "anon_key": _first_env(env, ANON_KEY_ENV_VARS),
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

    @property
    def is_configured(self) -> bool:
        return bool(self.url) and bool(self.anon_key)

    def headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.anon_key:
            headers["apikey"] = self.anon_key
            headers["Authorization"] = f"Bearer {self.anon_key}"
        headers.update(self.extra_headers)
        return headers

    def query_params(self) -> Dict[str, str]:
        return {"select": self.select, "order": self.order}


@dataclass(slots=True)
class CacheSettings:
    """Revalidation window and tags shared by every cached accessor."""

    revalidate_seconds: float = 60.0
    tags: Tuple[str, ...] = (DEFAULT_CACHE_TAG,)
    serialize: bool = False


@dataclass(slots=True)
class GeocodeSettings:
    """Settings used to geocode breweries that lack coordinates."""

    enabled: bool = False
    provider_url: str = "https://nominatim.openstreetmap.org/search"
    email: Optional[str] = None
    pause_seconds: float = 1.0
    timeout: int = 30
    country_codes: str = "us"

    def query_params(self, query: str) -> Dict[str, str]:
        params = {"format": "jsonv2", "q": query, "limit": "1", "countrycodes": self.country_codes}
        if self.email:
            params["email"] = self.email
        return params


@dataclass(slots=True)
class DirectorySettings:
    """Composite settings structure for the directory."""

    supabase: SupabaseSettings = field(default_factory=SupabaseSettings.from_env)
    cache: CacheSettings = field(default_factory=CacheSettings)
    geocode: GeocodeSettings = field(default_factory=GeocodeSettings)
    nearby_radius_miles: float = DEFAULT_NEARBY_RADIUS_MILES


def build_breweries_url(settings: SupabaseSettings) -> str:
    """Return the absolute PostgREST URL for the breweries table."""

    from urllib.parse import urljoin

    if not settings.url:
        return ""
    base = settings.url if settings.url.endswith("/") else f"{settings.url}/"
    return urljoin(base, f"rest/v1/{settings.table}")


def _first_env(env: Mapping[str, str], names: Tuple[str, ...]) -> Optional[str]:
    for name in names:
        value = env.get(name)
        if value:
            return value
    return None
