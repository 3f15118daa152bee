"""RemoteOK aggregator fetcher."""

import re
from typing import Any, Dict, List, Optional

from jobwizard.domain.models import JobRecord

from .base import BaseFetcher
from .exceptions import FetcherResponseError

DEV_TAG = re.compile(r"dev|engineer|software|programmer|backend|frontend|fullstack|rails|ruby", re.I)

# RemoteOK rejects requests from non-browser agents
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
)


class RemoteOkFetcher(BaseFetcher):
    """Fetcher for the RemoteOK public API.

    The board is global, so the slug is ignored. The first element of the
    response is a legal notice, not a job.

    API Details:
        Endpoint: https://remoteok.com/api
        Authentication: None (browser-like User-Agent required)
        Response: JSON array; 'date' is unix seconds or ISO 8601
    """

    PROVIDER = "remoteok"
    API_URL = "https://remoteok.com/api"
    JOB_URL = "https://remoteok.com/remote-jobs/{id}"

    def _fetch_items(self, slug: Optional[str]) -> List[Dict[str, Any]]:
        response = self._make_request(self.API_URL, headers={"User-Agent": BROWSER_USER_AGENT})
        if not isinstance(response, list):
            raise FetcherResponseError(
                f"Expected JSON array response, got {type(response).__name__}"
            )
        if response and isinstance(response[0], dict) and "legal" in response[0]:
            response = response[1:]
        return [item for item in response if isinstance(item, dict)]

    def _to_record(self, item: Dict[str, Any], slug: Optional[str]) -> Optional[JobRecord]:
        tags = item.get("tags") or []
        if not any(DEV_TAG.search(str(tag)) for tag in tags):
            return None

        job_id = item.get("id")
        return JobRecord(
            company=item["company"],
            title=item["position"],
            description=self._clean(item.get("description")),
            location=item.get("location") or "Remote",
            remote=True,
            url=item.get("url") or self.JOB_URL.format(id=job_id),
            source=self.PROVIDER,
            external_id=job_id,
            posted_at=self._parse_date(item.get("date")),
            metadata={
                "remoteok_id": job_id,
                "tags": tags,
                "salary_min": item.get("salary_min"),
                "salary_max": item.get("salary_max"),
            },
        )
