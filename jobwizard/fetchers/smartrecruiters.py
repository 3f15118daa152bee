"""SmartRecruiters postings fetcher."""

from typing import Any, Dict, List, Optional

from jobwizard.domain.models import JobRecord

from .base import NOT_SPECIFIED, BaseFetcher
from .exceptions import FetcherResponseError


class SmartRecruitersFetcher(BaseFetcher):
    """Fetcher for the SmartRecruiters public postings API.

    API Details:
        Endpoint: https://api.smartrecruiters.com/v1/companies/{slug}/postings?limit=100
        Authentication: None (public)
        Response: JSON object with a 'content' array
    """

    PROVIDER = "smartrecruiters"
    API_BASE_URL = "https://api.smartrecruiters.com/v1/companies"
    JOB_URL = "https://jobs.smartrecruiters.com/{slug}/{id}"
    PAGE_SIZE = "100"

    def _fetch_items(self, slug: Optional[str]) -> List[Dict[str, Any]]:
        response = self._make_request(
            f"{self.API_BASE_URL}/{slug}/postings", params={"limit": self.PAGE_SIZE}
        )
        if not isinstance(response, dict):
            raise FetcherResponseError(
                f"Expected JSON object response, got {type(response).__name__}"
            )
        return response.get("content") or []

    @staticmethod
    def _location(item: Dict[str, Any]) -> str:
        location = item.get("location") or {}
        parts = [location.get(key) for key in ("city", "region", "country")]
        parts = [part for part in parts if part]
        return ", ".join(parts) if parts else NOT_SPECIFIED

    def _to_record(self, item: Dict[str, Any], slug: Optional[str]) -> JobRecord:
        sections = ((item.get("jobAd") or {}).get("sections") or {})
        description = (sections.get("jobDescription") or {}).get("text")
        location = self._location(item)
        remote_flag = (item.get("location") or {}).get("remote") is True

        return JobRecord(
            company=(item.get("company") or {}).get("name") or slug,
            title=item["name"],
            description=self._clean(description),
            location=location,
            remote=remote_flag or "remote" in location.lower(),
            url=self.JOB_URL.format(slug=slug, id=item["id"]),
            source=self.PROVIDER,
            external_id=item["id"],
            posted_at=self._parse_date(item.get("releasedDate")),
            metadata={
                "smartrecruiters_id": item["id"],
                "job_ad_id": item.get("jobAdId"),
                "department": (item.get("department") or {}).get("label"),
            },
        )
