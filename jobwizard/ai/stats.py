"""Month-to-date AI usage report."""

from collections import Counter
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from jobwizard.persistence import AiUsageRepository
from jobwizard.utils.timestamps import utc_now

RECENT_LIMIT = 10


class UsageStats:
    def __init__(self, session: Session):
        self.repository = AiUsageRepository(session)

    def month_to_date(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Totals for the current calendar month (UTC).

        Returns:
            Dict with total_cents, total_dollars, by_feature (cents),
            count and the 10 most recent rows
        """
        now = now or utc_now()
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        usages = self.repository.list_between(month_start, now)

        by_feature = Counter()
        for usage in usages:
            by_feature[usage.feature] += usage.cost_cents

        total_cents = sum(usage.cost_cents for usage in usages)
        return {
            "total_cents": total_cents,
            "total_dollars": total_cents / 100.0,
            "by_feature": dict(by_feature),
            "count": len(usages),
            "recent": usages[:RECENT_LIMIT],
        }
