# app/services/fare_service.py
"""
Fare calculation. Pure and deterministic, no DB access.

fare = round_half_up(ceil(dwell_minutes) * rate_per_minute)

Partial minutes bill as full minutes. Unknown categories bill at the default
category's rate. Exit before entry (clock skew) bills as zero minutes.
"""

from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Mapping, Optional

from app.config import settings
from app.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_RATES = {"car": 0.5, "motorcycle": 0.2, "truck": 0.7}
_ONE_MINUTE = timedelta(minutes=1)


class FareCalculator:
    def __init__(self, rates: Optional[Mapping[str, float]] = None, default_category: str = "car"):
        rates = DEFAULT_RATES if rates is None else rates
        if default_category not in rates:
            raise ValueError(f"Rate table has no entry for default category '{default_category}'")
        # str() first so 0.7 stays exactly 0.7
        self.rates = {category: Decimal(str(rate)) for category, rate in rates.items()}
        self.default_category = default_category

    def rate_for(self, category: Optional[str]) -> Decimal:
        return self.rates.get(category, self.rates[self.default_category])

    def billable_minutes(self, entry_time: datetime, exit_time: datetime) -> int:
        """Whole minutes between entry and exit, any partial minute rounded up."""
        elapsed = exit_time - entry_time
        if elapsed < timedelta(0):
            logger.warning(f"Exit {exit_time} before entry {entry_time}, billing zero minutes")
            return 0
        minutes, remainder = divmod(elapsed, _ONE_MINUTE)
        return minutes + 1 if remainder else minutes

    def compute_fare(self, entry_time: datetime, exit_time: datetime, category: Optional[str]) -> int:
        minutes = self.billable_minutes(entry_time, exit_time)
        amount = minutes * self.rate_for(category)
        return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def build_fare_calculator(cfg=settings) -> FareCalculator:
    return FareCalculator(cfg.FARE_RATES, cfg.DEFAULT_CATEGORY)
