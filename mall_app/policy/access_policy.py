"""Row-level access rules, one predicate per entity.

Every list or read query in the repos is filtered with these predicates so
that a caller can never receive rows outside their role's scope. Write rules
are checked against already-loaded rows before any mutation.
"""

import uuid

from sqlalchemy import and_, false, or_, select, true
from sqlalchemy.sql import ColumnElement, Select

from mall_app.core.date_helper import today
from mall_app.core.errors import AuthorizationFailure
from mall_app.models.enums import LeaseStatus, RecipientType, UserRole
from mall_app.models.models import (
    Lease,
    LeaseRenewalRequest,
    MaintenanceRequest,
    Notice,
    Payment,
    Profile,
    Property,
)


def tenant_property_ids(tenant_id: uuid.UUID) -> Select:
    """Properties a tenant currently holds an active lease on.

    A lease still stored as active but past its end date grants nothing.
    """
    return select(Lease.property_id).where(
        Lease.tenant_id == tenant_id,
        Lease.status == LeaseStatus.ACTIVE,
        Lease.end_date >= today(),
    )


def landlord_property_ids(landlord_id: uuid.UUID) -> Select:
    return select(Property.id).where(Property.landlord_id == landlord_id)


class AccessPolicy:
    @staticmethod
    def scope_properties(profile: Profile) -> ColumnElement[bool]:
        if profile.role == UserRole.SUPERADMIN:
            return true()
        if profile.role == UserRole.LANDLORD:
            return Property.landlord_id == profile.id
        if profile.role == UserRole.TENANT:
            return Property.id.in_(tenant_property_ids(profile.id))
        return false()

    @staticmethod
    def scope_leases(profile: Profile) -> ColumnElement[bool]:
        if profile.role == UserRole.SUPERADMIN:
            return true()
        if profile.role == UserRole.LANDLORD:
            return Lease.landlord_id == profile.id
        if profile.role == UserRole.TENANT:
            return and_(
                Lease.tenant_id == profile.id,
                Lease.status == LeaseStatus.ACTIVE,
                Lease.end_date >= today(),
            )
        return false()

    @staticmethod
    def scope_renewals(profile: Profile) -> ColumnElement[bool]:
        if profile.role == UserRole.SUPERADMIN:
            return true()
        if profile.role == UserRole.LANDLORD:
            return LeaseRenewalRequest.landlord_id == profile.id
        if profile.role == UserRole.TENANT:
            return LeaseRenewalRequest.tenant_id == profile.id
        return false()

    @staticmethod
    def scope_payments(profile: Profile) -> ColumnElement[bool]:
        if profile.role == UserRole.SUPERADMIN:
            return true()
        if profile.role == UserRole.LANDLORD:
            return Payment.landlord_id == profile.id
        if profile.role == UserRole.TENANT:
            return Payment.tenant_id == profile.id
        return false()

    @staticmethod
    def scope_maintenance(profile: Profile) -> ColumnElement[bool]:
        if profile.role == UserRole.SUPERADMIN:
            return true()
        if profile.role == UserRole.LANDLORD:
            return or_(
                MaintenanceRequest.landlord_id == profile.id,
                MaintenanceRequest.property_id.in_(landlord_property_ids(profile.id)),
            )
        if profile.role == UserRole.TENANT:
            return MaintenanceRequest.tenant_id == profile.id
        return false()

    @staticmethod
    def scope_notices(profile: Profile) -> ColumnElement[bool]:
        if profile.role == UserRole.SUPERADMIN:
            return true()
        if profile.role == UserRole.LANDLORD:
            return Notice.sender_id == profile.id
        if profile.role == UserRole.TENANT:
            return or_(
                Notice.recipient_type == RecipientType.ALL,
                and_(
                    Notice.recipient_type == RecipientType.INDIVIDUAL,
                    Notice.recipient_id == profile.id,
                ),
                and_(
                    Notice.recipient_type == RecipientType.PROPERTY,
                    Notice.property_id.in_(tenant_property_ids(profile.id)),
                ),
            )
        return false()

    @staticmethod
    def owns(profile: Profile, landlord_id: uuid.UUID | None) -> bool:
        if profile.role == UserRole.SUPERADMIN:
            return True
        return profile.role == UserRole.LANDLORD and landlord_id == profile.id

    @classmethod
    def require_owner(cls, profile: Profile, landlord_id: uuid.UUID | None, what: str):
        if not cls.owns(profile, landlord_id):
            raise AuthorizationFailure(f"Not permitted to modify this {what}")
