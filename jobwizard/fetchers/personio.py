"""Personio XML feed fetcher."""

import xml.etree.ElementTree as ET
from typing import List, Optional

from jobwizard.domain.models import JobRecord

from .base import NOT_SPECIFIED, BaseFetcher
from .exceptions import FetcherResponseError


def _text(node: ET.Element, path: str) -> Optional[str]:
    found = node.find(path)
    if found is None or found.text is None:
        return None
    stripped = found.text.strip()
    return stripped or None


class PersonioFetcher(BaseFetcher):
    """Fetcher for Personio career-site XML feeds.

    API Details:
        Endpoint: https://{slug}.jobs.personio.de/xml
        Authentication: None (public)
        Response: XML document with one <position> element per job
    """

    PROVIDER = "personio"
    FEED_URL = "https://{slug}.jobs.personio.de/xml"
    JOB_URL = "https://{slug}.jobs.personio.de/job/{id}"

    def _fetch_items(self, slug: Optional[str]) -> List[ET.Element]:
        body = self._make_request(self.FEED_URL.format(slug=slug), as_text=True)
        try:
            root = ET.fromstring(body)
        except ET.ParseError as e:
            raise FetcherResponseError(f"Failed to parse Personio XML for {slug}: {e}") from e
        return list(root.iter("position"))

    @staticmethod
    def _description(node: ET.Element) -> str:
        sections = []
        for section in node.findall("jobDescriptions/jobDescription"):
            name = _text(section, "name")
            value = _text(section, "value")
            if name and value:
                sections.append(f"<h3>{name}</h3>{value}")
            elif value:
                sections.append(value)
        if sections:
            return "\n\n".join(sections)
        return _text(node, "description") or ""

    @staticmethod
    def _location(node: ET.Element) -> str:
        office = _text(node, "office")
        if office:
            return office
        parts = [part for part in (_text(node, "city"), _text(node, "country")) if part]
        return ", ".join(parts) if parts else NOT_SPECIFIED

    def _to_record(self, item: ET.Element, slug: Optional[str]) -> JobRecord:
        position_id = _text(item, "id")
        location = self._location(item)

        return JobRecord(
            company=_text(item, "company") or self._company_from_slug(slug),
            title=_text(item, "name"),
            description=self._clean(self._description(item)),
            location=location,
            remote="remote" in location.lower(),
            url=_text(item, "url") or self.JOB_URL.format(slug=slug, id=position_id),
            source=self.PROVIDER,
            external_id=position_id,
            posted_at=self._parse_date(_text(item, "createdAt")),
            metadata={
                "personio_id": position_id,
                "department": _text(item, "department"),
                "employment_type": _text(item, "employmentType"),
            },
        )
