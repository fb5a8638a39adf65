from decimal import Decimal

import pytest

from mall_app.core.errors import (
    AuthorizationFailure,
    LifecycleConflict,
    NotFound,
    ValidationFailure,
)
from mall_app.models.enums import LeaseStatus, PropertyStatus
from mall_app.schemas.schema import PropertyCreate, PropertyUpdate
from mall_app.services.property_service import PropertyService
from tests.factories import make_lease, make_property


def shop(**fields):
    return PropertyCreate(
        name="Garden City",
        location="Yusuf Lule Rd",
        unit_number=fields.pop("unit_number", "L1-04"),
        size_sqft=320,
        rent_amount=Decimal("2500000"),
        currency="UGX",
        **fields,
    )


class TestPropertyScope:
    async def test_each_role_sees_its_own_slice(self, db, service_db, people):
        leased = await make_property(db, people["landlord"])
        await make_lease(db, leased, people["tenant"])
        vacant = await make_property(db, people["landlord"], unit_number="G-20")
        foreign = await make_property(db, people["other_landlord"], unit_number="G-30")
        service = PropertyService(service_db)

        admin_ids = {p.id for p in await service.list_properties(people["admin"])}
        assert admin_ids == {leased.id, vacant.id, foreign.id}

        landlord_ids = {p.id for p in await service.list_properties(people["landlord"])}
        assert landlord_ids == {leased.id, vacant.id}

        tenant_ids = [p.id for p in await service.list_properties(people["tenant"])]
        assert tenant_ids == [leased.id]

        assert await service.list_properties(people["other_tenant"]) == []

    async def test_tenant_loses_access_once_lease_expires(self, db, service_db, people):
        prop = await make_property(db, people["landlord"])
        await make_lease(
            db, prop, people["tenant"], status=LeaseStatus.EXPIRED, days_left=-1
        )
        with pytest.raises(NotFound):
            await PropertyService(service_db).get_property(prop.id, people["tenant"])

    async def test_lapsed_lease_still_stored_active_grants_nothing(
        self, db, service_db, people
    ):
        prop = await make_property(db, people["landlord"])
        await make_lease(db, prop, people["tenant"], days_left=-1)
        service = PropertyService(service_db)
        assert await service.list_properties(people["tenant"]) == []
        with pytest.raises(NotFound):
            await service.get_property(prop.id, people["tenant"])

    async def test_filter_by_status(self, db, service_db, people):
        await make_property(db, people["landlord"])
        repair = await make_property(
            db, people["landlord"], unit_number="G-21", status=PropertyStatus.MAINTENANCE
        )
        rows = await PropertyService(service_db).list_properties(
            people["landlord"], status=PropertyStatus.MAINTENANCE
        )
        assert [p.id for p in rows] == [repair.id]


class TestPropertyWrites:
    async def test_landlord_creates_own_property(self, service_db, people):
        out = await PropertyService(service_db).create_property(shop(), people["landlord"])
        assert out.landlord_id == people["landlord"].id
        assert out.status == PropertyStatus.AVAILABLE

    async def test_landlord_cannot_create_for_someone_else(self, service_db, people):
        with pytest.raises(AuthorizationFailure):
            await PropertyService(service_db).create_property(
                shop(landlord_id=people["other_landlord"].id), people["landlord"]
            )

    async def test_superadmin_must_name_a_landlord(self, service_db, people):
        service = PropertyService(service_db)
        with pytest.raises(ValidationFailure):
            await service.create_property(shop(), people["admin"])
        with pytest.raises(ValidationFailure):
            await service.create_property(
                shop(landlord_id=people["tenant"].id), people["admin"]
            )
        out = await service.create_property(
            shop(landlord_id=people["other_landlord"].id), people["admin"]
        )
        assert out.landlord_id == people["other_landlord"].id

    async def test_occupied_cannot_be_set_by_hand(self, db, service_db, people):
        prop = await make_property(db, people["landlord"])
        with pytest.raises(ValidationFailure):
            await PropertyService(service_db).update_property(
                prop.id, PropertyUpdate(status=PropertyStatus.OCCUPIED), people["landlord"]
            )

    async def test_status_locked_while_leased(self, db, service_db, people):
        prop = await make_property(db, people["landlord"])
        await make_lease(db, prop, people["tenant"])
        with pytest.raises(LifecycleConflict):
            await PropertyService(service_db).update_property(
                prop.id,
                PropertyUpdate(status=PropertyStatus.MAINTENANCE),
                people["landlord"],
            )

    async def test_other_landlord_cannot_edit(self, db, service_db, people):
        prop = await make_property(db, people["landlord"])
        with pytest.raises(NotFound):
            await PropertyService(service_db).update_property(
                prop.id, PropertyUpdate(name="Renamed"), people["other_landlord"]
            )

    async def test_delete_blocked_by_active_lease(self, db, service_db, people):
        prop = await make_property(db, people["landlord"])
        await make_lease(db, prop, people["tenant"])
        with pytest.raises(LifecycleConflict):
            await PropertyService(service_db).delete_property(prop.id, people["landlord"])

    async def test_delete_vacant(self, db, service_db, people):
        prop = await make_property(db, people["landlord"])
        service = PropertyService(service_db)
        await service.delete_property(prop.id, people["landlord"])
        with pytest.raises(NotFound):
            await service.get_property(prop.id, people["landlord"])
