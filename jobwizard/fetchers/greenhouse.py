"""Greenhouse job board fetcher."""

from typing import Any, Dict, List, Optional

from jobwizard.domain.models import JobRecord

from .base import BaseFetcher
from .exceptions import FetcherResponseError


class GreenhouseFetcher(BaseFetcher):
    """Fetcher for public Greenhouse job boards.

    API Details:
        Endpoint: https://boards-api.greenhouse.io/v1/boards/{slug}/jobs?content=true
        Authentication: None (public)
        Response: JSON object with a 'jobs' array; 'content' holds escaped HTML
    """

    PROVIDER = "greenhouse"
    API_BASE_URL = "https://boards-api.greenhouse.io/v1/boards"

    def _fetch_items(self, slug: Optional[str]) -> List[Dict[str, Any]]:
        response = self._make_request(f"{self.API_BASE_URL}/{slug}/jobs", params={"content": "true"})

        if not isinstance(response, dict):
            raise FetcherResponseError(
                f"Expected JSON object response, got {type(response).__name__}"
            )
        jobs = response.get("jobs") or []
        if not isinstance(jobs, list):
            raise FetcherResponseError(
                f"Expected 'jobs' field to be array, got {type(jobs).__name__}"
            )
        return jobs

    def _to_record(self, item: Dict[str, Any], slug: Optional[str]) -> JobRecord:
        location = (item.get("location") or {}).get("name")
        departments = [d.get("name") for d in item.get("departments") or [] if d.get("name")]

        return JobRecord(
            company=item.get("company_name") or self._company_from_slug(slug),
            title=item["title"],
            description=self._clean(item.get("content")),
            location=location,
            remote="remote" in (location or "").lower(),
            url=item["absolute_url"],
            source=self.PROVIDER,
            external_id=item.get("id"),
            posted_at=self._parse_date(item.get("updated_at")),
            metadata={"greenhouse_id": item.get("id"), "departments": departments},
        )
