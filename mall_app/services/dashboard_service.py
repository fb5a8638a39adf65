import logging

from mall_app.core.breaker import breaker
from mall_app.core.check_permission import CheckRolePermission
from mall_app.core.date_helper import month_bounds, today
from mall_app.core.settings import settings
from mall_app.models.enums import UserRole
from mall_app.repos.lease_repo import LeaseRepo
from mall_app.repos.maintenance_repo import MaintenanceRepo
from mall_app.repos.notice_repo import NoticeRepo
from mall_app.repos.payment_repo import PaymentRepo
from mall_app.repos.property_repo import PropertyRepo
from mall_app.schemas.schema import DashboardStatsOut, MoneyTotal

from .currency_service import format_amount
from .lease_lifecycle import effective_lease_status

logger = logging.getLogger(__name__)


class DashboardService:
    """Role-scoped counters for the landing screen of each role."""

    def __init__(self, db):
        self.property_repo: PropertyRepo = PropertyRepo(db)
        self.lease_repo: LeaseRepo = LeaseRepo(db)
        self.payment_repo: PaymentRepo = PaymentRepo(db)
        self.maintenance_repo: MaintenanceRepo = MaintenanceRepo(db)
        self.notice_repo: NoticeRepo = NoticeRepo(db)
        self.permission: CheckRolePermission = CheckRolePermission()

    async def stats(self, current_user) -> DashboardStatsOut:
        await self.permission.check_authenticated(current_user=current_user)
        on = today()
        month_start, month_end = month_bounds(on)

        async def _handler():
            return (
                await self.property_repo.count_by_status(current_user),
                await self.lease_repo.list_visible(current_user),
                await self.payment_repo.collected_between(
                    current_user, month_start, month_end
                ),
                await self.payment_repo.count_pending(current_user, on),
                await self.payment_repo.count_overdue(current_user, on),
                await self.maintenance_repo.count_open(current_user),
                await self.notice_repo.list_visible(current_user),
            )

        (
            by_status,
            leases,
            collected,
            pending,
            overdue,
            open_maintenance,
            notices,
        ) = await breaker.call(_handler)

        effective = [effective_lease_status(lease, on) for lease in leases]
        active = [status for status in effective if status.is_active]
        reader_key = str(current_user.id)
        unread = 0
        if current_user.role == UserRole.TENANT:
            unread = sum(
                1 for notice in notices if (notice.read_status or {}).get(reader_key) is not True
            )

        return DashboardStatsOut(
            role=current_user.role,
            properties_total=sum(by_status.values()),
            properties_by_status=by_status,
            active_leases=len(active),
            leases_expiring_soon=sum(
                1
                for status in active
                if status.days_until_expiry <= settings.EXPIRY_WARNING_DAYS
            ),
            collected_this_month=[
                MoneyTotal(
                    currency=currency,
                    amount=amount,
                    formatted=format_amount(amount, currency),
                )
                for currency, amount in sorted(collected.items(), key=lambda x: x[0].value)
            ],
            pending_payments=pending,
            overdue_payments=overdue,
            open_maintenance=open_maintenance,
            unread_notices=unread,
        )
