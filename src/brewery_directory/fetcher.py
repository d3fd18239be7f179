"""HTTP client for loading every brewery row from the Supabase REST endpoint."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, List, Optional

import requests

from .errors import ConfigurationError, FetchTimeoutError, TransportError
from .models import BreweryRecord, records_from_rows
from .settings import SupabaseSettings, build_breweries_url

logger = logging.getLogger(__name__)


class SupabaseBreweryFetcher:
    """Fetch the full brewery table, beers included, in a single request."""

    def __init__(self, settings: Optional[SupabaseSettings] = None, session: Optional[requests.Session] = None) -> None:
        self.settings = settings or SupabaseSettings.from_env()
        self._session = session or requests.Session()
        self._session.headers.update(self.settings.headers())

    @property
    def session(self) -> requests.Session:
        """Return the HTTP session used to talk to the backing store."""

        return self._session

    def fetch_rows(self) -> List[Any]:
        """Return the raw JSON rows for every brewery."""

        if not self.settings.is_configured:
            raise ConfigurationError(
                "Missing Supabase settings. Set NEXT_PUBLIC_SUPABASE_URL and NEXT_PUBLIC_SUPABASE_ANON_KEY"
            )

        url = build_breweries_url(self.settings)
        logger.debug("Fetching breweries from %s", url)
        try:
            response = self._session.get(
                url,
                params=self.settings.query_params(),
                timeout=self.settings.request_timeout,
            )
            response.raise_for_status()
            rows = response.json()
        except requests.Timeout as exc:
            raise FetchTimeoutError(
                f"Timed out after {self.settings.request_timeout}s fetching breweries"
            ) from exc
        except requests.JSONDecodeError as exc:
            raise TransportError("Brewery response was not valid JSON") from exc
        except requests.RequestException as exc:
            raise TransportError(f"Failed to fetch breweries: {exc}") from exc

        if not isinstance(rows, list):
            raise TransportError(f"Expected a list of breweries, got {type(rows).__name__}")
        return rows

    def fetch_all(self) -> List[BreweryRecord]:
        """Fetch and convert every brewery row."""

        started = time.perf_counter()
        rows = self.fetch_rows()
        if not rows:
            logger.warning("No breweries returned by %s", self.settings.table)
        breweries = records_from_rows(rows)
        logger.info(
            "Fetched %d breweries in %.0fms",
            len(breweries),
            (time.perf_counter() - started) * 1000,
        )
        return breweries

    async def fetch_all_async(self) -> List[BreweryRecord]:
        """Run :meth:`fetch_all` without blocking the event loop."""

        return await asyncio.to_thread(self.fetch_all)
