"""Remotive aggregator fetcher."""

from typing import Any, Dict, List, Optional

from jobwizard.domain.models import JobRecord

from .base import BaseFetcher
from .exceptions import FetcherResponseError


class RemotiveFetcher(BaseFetcher):
    """Fetcher for Remotive's software-development category.

    API Details:
        Endpoint: https://remotive.com/api/remote-jobs?category=software-dev
        Authentication: None (public)
        Response: JSON object with a 'jobs' array
    """

    PROVIDER = "remotive"
    API_URL = "https://remotive.com/api/remote-jobs"
    CATEGORY = "software-dev"

    def _fetch_items(self, slug: Optional[str]) -> List[Dict[str, Any]]:
        response = self._make_request(self.API_URL, params={"category": self.CATEGORY})
        if not isinstance(response, dict):
            raise FetcherResponseError(
                f"Expected JSON object response, got {type(response).__name__}"
            )
        return response.get("jobs") or []

    def _to_record(self, item: Dict[str, Any], slug: Optional[str]) -> JobRecord:
        return JobRecord(
            company=item["company_name"],
            title=item["title"],
            description=self._clean(item.get("description")),
            location=item.get("candidate_required_location") or "Worldwide",
            remote=True,
            url=item["url"],
            source=self.PROVIDER,
            external_id=item.get("id"),
            posted_at=self._parse_date(item.get("publication_date")),
            metadata={
                "remotive_id": item.get("id"),
                "job_type": item.get("job_type"),
                "category": item.get("category"),
                "salary": item.get("salary"),
            },
        )
