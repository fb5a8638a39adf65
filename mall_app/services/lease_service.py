import logging
import uuid
from datetime import date
from typing import List

from mall_app.core.breaker import breaker
from mall_app.core.check_permission import CheckRolePermission
from mall_app.core.date_helper import default_renewal_end, today, utc_now
from mall_app.core.errors import (
    LifecycleConflict,
    NotFound,
    ValidationFailure,
)
from mall_app.core.event_publish import publish_change
from mall_app.core.transaction import atomic
from mall_app.models.enums import (
    ChangeEvent,
    LeaseStatus,
    PropertyStatus,
    RenewalStatus,
    UserRole,
)
from mall_app.models.models import Lease
from mall_app.policy.access_policy import AccessPolicy
from mall_app.repos.lease_repo import LeaseRepo, RenewalRepo
from mall_app.repos.profile_repo import ProfileRepo
from mall_app.repos.property_repo import PropertyRepo
from mall_app.schemas.schema import (
    LeaseCreate,
    LeaseHistoryOut,
    LeaseOut,
    LeaseUpdate,
    RenewalDecision,
    RenewalRequestCreate,
    RenewalRequestOut,
)

from .lease_lifecycle import effective_lease_status, is_stale_active

logger = logging.getLogger(__name__)


def lease_out(lease: Lease, on: date | None = None) -> LeaseOut:
    effective = effective_lease_status(lease, on)
    return LeaseOut(
        id=lease.id,
        property_id=lease.property_id,
        tenant_id=lease.tenant_id,
        landlord_id=lease.landlord_id,
        start_date=lease.start_date,
        end_date=lease.end_date,
        monthly_rent=lease.monthly_rent,
        deposit=lease.deposit,
        currency=lease.currency,
        terms=lease.terms,
        stored_status=lease.status,
        status=effective.status,
        days_until_expiry=effective.days_until_expiry,
        expiry_warning=effective.warning,
        severity=effective.severity,
        created_at=lease.created_at,
    )


class LeaseService:
    def __init__(self, db):
        self.db = db
        self.repo: LeaseRepo = LeaseRepo(db)
        self.renewal_repo: RenewalRepo = RenewalRepo(db)
        self.property_repo: PropertyRepo = PropertyRepo(db)
        self.profile_repo: ProfileRepo = ProfileRepo(db)
        self.permission: CheckRolePermission = CheckRolePermission()

    async def _visible_lease(self, current_user, lease_id: uuid.UUID) -> Lease:
        lease = await self.repo.get_visible(current_user, lease_id)
        if not lease:
            raise NotFound("Lease not found")
        return lease

    async def _ensure_no_active_lease(self, property_id: uuid.UUID, on: date, skip=None):
        active = []
        for lease in await self.repo.stored_active_for_property(property_id):
            if lease.id == skip:
                continue
            if is_stale_active(lease, on):
                lease.status = LeaseStatus.EXPIRED
                logger.info(f"Lease {lease.id} past its end date marked expired")
            else:
                active.append(lease)
        await self.db.flush()
        if active:
            raise LifecycleConflict("Property already has an active lease")

    async def create_lease(self, payload: LeaseCreate, current_user) -> LeaseOut:
        await self.permission.check_manager(current_user=current_user)
        on = today()
        if payload.end_date < on:
            raise ValidationFailure("Cannot create a lease that has already ended")

        async def _handler():
            prop = await self.property_repo.get_visible(current_user, payload.property_id)
            if not prop:
                raise NotFound("Property not found")
            AccessPolicy.require_owner(current_user, prop.landlord_id, "property")
            if prop.status == PropertyStatus.MAINTENANCE:
                raise LifecycleConflict("Property is under maintenance")

            tenant = await self.profile_repo.get_by_id(payload.tenant_id)
            if not tenant or tenant.role != UserRole.TENANT:
                raise ValidationFailure("tenant_id must reference a tenant profile")
            if not tenant.is_active:
                raise ValidationFailure("Tenant account is deactivated")

            await self._ensure_no_active_lease(prop.id, on)

            lease = await self.repo.create(
                property_id=prop.id,
                tenant_id=tenant.id,
                landlord_id=prop.landlord_id,
                start_date=payload.start_date,
                end_date=payload.end_date,
                monthly_rent=payload.monthly_rent,
                deposit=payload.deposit,
                currency=payload.currency,
                terms=payload.terms,
                status=LeaseStatus.ACTIVE,
            )
            await self.property_repo.set_status(prop, PropertyStatus.OCCUPIED)
            await self.repo.db_commit_and_refresh(lease)
            return lease

        lease = await breaker.call(atomic, self.db, _handler)
        logger.info(f"Lease {lease.id} created on property {lease.property_id}")
        await publish_change("leases", ChangeEvent.INSERT, lease.id)
        await publish_change("properties", ChangeEvent.UPDATE, lease.property_id)
        return lease_out(lease)

    async def update_lease(self, lease_id: uuid.UUID, payload: LeaseUpdate, current_user):
        await self.permission.check_manager(current_user=current_user)

        async def _handler():
            lease = await self._visible_lease(current_user, lease_id)
            AccessPolicy.require_owner(current_user, lease.landlord_id, "lease")

            for field, value in payload.model_dump(exclude_unset=True).items():
                if value is None:
                    raise ValidationFailure(f"{field} cannot be cleared")
                setattr(lease, field, value)
            if lease.end_date <= lease.start_date:
                raise ValidationFailure("end_date must be after start_date")

            await self.repo.db_commit_and_refresh(lease)
            return lease

        lease = await breaker.call(atomic, self.db, _handler)
        await publish_change("leases", ChangeEvent.UPDATE, lease.id)
        return lease_out(lease)

    async def delete_lease(self, lease_id: uuid.UUID, current_user, reason: str | None = None):
        """Remove a lease, archive it and free its property in one commit."""
        await self.permission.check_manager(current_user=current_user)

        async def _handler():
            lease = await self._visible_lease(current_user, lease_id)
            AccessPolicy.require_owner(current_user, lease.landlord_id, "lease")
            property_id = lease.property_id

            await self.repo.add_history(lease, reason or "lease deleted")
            await self.repo.db_delete(lease)

            prop = await self.property_repo.get_for_update(property_id)
            remaining = await self.repo.stored_active_for_property(property_id)
            if prop is not None and not remaining:
                await self.property_repo.set_status(prop, PropertyStatus.AVAILABLE)
            await self.repo.db_commit()
            return property_id

        property_id = await breaker.call(atomic, self.db, _handler)
        logger.info(f"Lease {lease_id} deleted; property {property_id} released")
        await publish_change("leases", ChangeEvent.DELETE, lease_id)
        await publish_change("properties", ChangeEvent.UPDATE, property_id)
        return {"success": True, "message": "Lease deleted", "property_id": property_id}

    async def get_lease(self, lease_id: uuid.UUID, current_user) -> LeaseOut:
        await self.permission.check_authenticated(current_user=current_user)

        async def _handler():
            return await self._visible_lease(current_user, lease_id)

        lease = await breaker.call(_handler)
        out = lease_out(lease)
        if current_user.role == UserRole.TENANT and out.status != LeaseStatus.ACTIVE:
            raise NotFound("Lease not found")
        return out

    async def list_leases(
        self, current_user, property_id: uuid.UUID | None = None
    ) -> List[LeaseOut]:
        await self.permission.check_authenticated(current_user=current_user)

        async def _handler():
            return await self.repo.list_visible(current_user, property_id=property_id)

        leases = await breaker.call(_handler)
        on = today()
        out = [lease_out(lease, on) for lease in leases]
        if current_user.role == UserRole.TENANT:
            out = [lease for lease in out if lease.status == LeaseStatus.ACTIVE]
        return out

    async def lease_history(self, property_id: uuid.UUID, current_user):
        await self.permission.check_manager(current_user=current_user)

        async def _handler():
            prop = await self.property_repo.get_visible(current_user, property_id)
            if not prop:
                raise NotFound("Property not found")
            return await self.repo.history_for_property(property_id)

        rows = await breaker.call(_handler)
        return [LeaseHistoryOut.model_validate(row) for row in rows]

    async def request_renewal(
        self, lease_id: uuid.UUID, payload: RenewalRequestCreate, current_user
    ) -> RenewalRequestOut:
        await self.permission.check_tenant(current_user=current_user)

        async def _handler():
            lease = await self._visible_lease(current_user, lease_id)
            if not effective_lease_status(lease).is_active:
                raise LifecycleConflict("Only an active lease can be renewed")
            requested_end = payload.requested_end_date or default_renewal_end(lease.end_date)
            if requested_end <= lease.end_date:
                raise ValidationFailure(
                    "requested_end_date must be after the current end date"
                )
            if await self.renewal_repo.pending_for_lease(lease.id):
                raise LifecycleConflict("A renewal request is already pending")

            request = await self.renewal_repo.create(
                lease_id=lease.id,
                tenant_id=lease.tenant_id,
                landlord_id=lease.landlord_id,
                requested_end_date=requested_end,
                requested_rent=payload.requested_rent or lease.monthly_rent,
                request_message=payload.request_message,
                status=RenewalStatus.PENDING,
            )
            await self.renewal_repo.db_commit_and_refresh(request)
            return request

        request = await breaker.call(atomic, self.db, _handler)
        await publish_change("lease_renewal_requests", ChangeEvent.INSERT, request.id)
        return RenewalRequestOut.model_validate(request)

    async def respond_renewal(
        self, request_id: uuid.UUID, decision: RenewalDecision, current_user
    ) -> RenewalRequestOut:
        await self.permission.check_manager(current_user=current_user)

        async def _handler():
            request = await self.renewal_repo.get_visible(current_user, request_id)
            if not request:
                raise NotFound("Renewal request not found")
            AccessPolicy.require_owner(current_user, request.landlord_id, "renewal request")
            if request.status != RenewalStatus.PENDING:
                raise LifecycleConflict(
                    f"Renewal request was already {request.status.value}"
                )

            lease = None
            if decision.approve:
                lease = await self.repo.get_by_id(request.lease_id)
                if not lease:
                    raise LifecycleConflict("The lease for this request no longer exists")
                if not effective_lease_status(lease).is_active:
                    # the property may have been freed since the lease lapsed
                    await self._ensure_no_active_lease(
                        lease.property_id, today(), skip=lease.id
                    )
                    prop = await self.property_repo.get_for_update(lease.property_id)
                    await self.property_repo.set_status(prop, PropertyStatus.OCCUPIED)
                lease.end_date = request.requested_end_date
                lease.monthly_rent = request.requested_rent
                lease.status = LeaseStatus.ACTIVE

            request.status = (
                RenewalStatus.APPROVED if decision.approve else RenewalStatus.REJECTED
            )
            request.response_message = decision.response_message
            request.responded_at = utc_now()
            await self.renewal_repo.db_commit_and_refresh(request)
            return request, lease

        request, lease = await breaker.call(atomic, self.db, _handler)
        await publish_change("lease_renewal_requests", ChangeEvent.UPDATE, request.id)
        if lease is not None:
            await publish_change("leases", ChangeEvent.UPDATE, lease.id)
        return RenewalRequestOut.model_validate(request)

    async def list_renewals(self, current_user) -> List[RenewalRequestOut]:
        await self.permission.check_authenticated(current_user=current_user)

        async def _handler():
            return await self.renewal_repo.list_visible(current_user)

        rows = await breaker.call(_handler)
        return [RenewalRequestOut.model_validate(row) for row in rows]
