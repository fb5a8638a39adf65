from dataclasses import dataclass
from datetime import date
from typing import Optional

from mall_app.core.date_helper import days_between, today as current_day
from mall_app.models.enums import ExpiryWarning, LeaseStatus, Severity

THIS_WEEK_DAYS = 7
SOON_DAYS = 30
MEDIUM_DAYS = 60


@dataclass(frozen=True)
class EffectiveLeaseStatus:
    status: LeaseStatus
    days_until_expiry: int
    warning: Optional[ExpiryWarning]
    severity: Severity

    @property
    def is_active(self) -> bool:
        return self.status == LeaseStatus.ACTIVE


def expiry_warning(days: int, expired: bool) -> Optional[ExpiryWarning]:
    if expired:
        return ExpiryWarning.EXPIRED
    if days <= THIS_WEEK_DAYS:
        return ExpiryWarning.THIS_WEEK
    if days <= SOON_DAYS:
        return ExpiryWarning.SOON
    return None


def expiry_severity(days: int, expired: bool) -> Severity:
    if expired or days <= SOON_DAYS:
        return Severity.HIGH
    if days <= MEDIUM_DAYS:
        return Severity.MEDIUM
    return Severity.LOW


def effective_lease_status(lease, on: date | None = None) -> EffectiveLeaseStatus:
    """Derive the status shown for ``lease`` on day ``on`` (default today).

    The stored status is a write-time snapshot; the end date always wins.
    """
    on = on or current_day()
    days = days_between(on, lease.end_date)
    expired = lease.status == LeaseStatus.EXPIRED or days < 0
    return EffectiveLeaseStatus(
        status=LeaseStatus.EXPIRED if expired else LeaseStatus.ACTIVE,
        days_until_expiry=days,
        warning=expiry_warning(days, expired),
        severity=expiry_severity(days, expired),
    )


def is_stale_active(lease, on: date | None = None) -> bool:
    """Stored as active but already past its end date."""
    return (
        lease.status == LeaseStatus.ACTIVE
        and not effective_lease_status(lease, on).is_active
    )
