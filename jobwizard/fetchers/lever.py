"""Lever postings fetcher."""

from typing import Any, Dict, List, Optional

from jobwizard.domain.models import JobRecord

from .base import NOT_SPECIFIED, BaseFetcher
from .exceptions import FetcherResponseError


class LeverFetcher(BaseFetcher):
    """Fetcher for the public Lever postings API.

    API Details:
        Endpoint: https://api.lever.co/v0/postings/{slug}?mode=json
        Authentication: None (public)
        Response: JSON array of postings, occasionally wrapped in
            'postings' or 'data'; createdAt is in milliseconds
    """

    PROVIDER = "lever"
    API_BASE_URL = "https://api.lever.co/v0/postings"

    def _fetch_items(self, slug: Optional[str]) -> List[Dict[str, Any]]:
        response = self._make_request(f"{self.API_BASE_URL}/{slug}", params={"mode": "json"})

        if isinstance(response, dict):
            wrapped = response.get("postings", response.get("data"))
            response = wrapped if wrapped is not None else [response]
        if not isinstance(response, list):
            raise FetcherResponseError(
                f"Expected JSON array response, got {type(response).__name__}"
            )
        return response

    @staticmethod
    def _location(item: Dict[str, Any]) -> str:
        categories = item.get("categories") or {}
        return categories.get("location") or item.get("location") or NOT_SPECIFIED

    def _to_record(self, item: Dict[str, Any], slug: Optional[str]) -> JobRecord:
        description = item.get("description") or item.get("descriptionPlain") or ""
        additional = item.get("additional") or item.get("additionalPlain") or ""
        raw_html = "\n\n".join(part for part in (description, additional) if part.strip())

        location = self._location(item)
        categories = item.get("categories") or {}

        return JobRecord(
            company=item.get("companyName") or self._company_from_slug(slug),
            title=item["text"],
            description=self._clean(raw_html),
            location=location,
            remote=any(word in location.lower() for word in ("remote", "anywhere")),
            url=item.get("hostedUrl") or item.get("applyUrl"),
            source=self.PROVIDER,
            external_id=item.get("id"),
            posted_at=self._parse_date(item.get("createdAt"), milliseconds=True),
            metadata={
                "lever_id": item.get("id"),
                "categories": categories,
                "team": categories.get("team"),
            },
        )
