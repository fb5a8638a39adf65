import pytest

from mall_app.core.errors import AuthorizationFailure, NotFound, ValidationFailure
from mall_app.models.enums import RecipientType
from mall_app.schemas.schema import NoticeCreate
from mall_app.services.notice_service import NoticeService
from tests.factories import make_lease, make_property


def notice(**fields):
    return NoticeCreate(title="Water shutoff", content="Tuesday 9am to noon", **fields)


class TestNoticeScope:
    async def test_tenant_sees_broadcast_individual_and_property(
        self, db, service_db, people
    ):
        prop = await make_property(db, people["landlord"])
        await make_lease(db, prop, people["tenant"])
        other_prop = await make_property(db, people["landlord"], unit_number="F-1")
        service = NoticeService(service_db)

        everyone = await service.create_notice(notice(), people["landlord"])
        direct = await service.create_notice(
            notice(
                recipient_type=RecipientType.INDIVIDUAL,
                recipient_id=people["tenant"].id,
            ),
            people["landlord"],
        )
        for_prop = await service.create_notice(
            notice(recipient_type=RecipientType.PROPERTY, property_id=prop.id),
            people["landlord"],
        )
        await service.create_notice(
            notice(
                recipient_type=RecipientType.INDIVIDUAL,
                recipient_id=people["other_tenant"].id,
            ),
            people["landlord"],
        )
        await service.create_notice(
            notice(recipient_type=RecipientType.PROPERTY, property_id=other_prop.id),
            people["landlord"],
        )

        seen = {n.id for n in await service.list_notices(people["tenant"])}
        assert seen == {everyone.id, direct.id, for_prop.id}

    async def test_property_notices_stop_after_lease_lapses(self, db, service_db, people):
        prop = await make_property(db, people["landlord"])
        await make_lease(db, prop, people["tenant"], days_left=-1)
        service = NoticeService(service_db)
        await service.create_notice(
            notice(recipient_type=RecipientType.PROPERTY, property_id=prop.id),
            people["landlord"],
        )
        assert await service.list_notices(people["tenant"]) == []

    async def test_landlord_sees_only_sent(self, service_db, people):
        service = NoticeService(service_db)
        await service.create_notice(notice(), people["admin"])
        mine = await service.create_notice(notice(), people["landlord"])
        seen = [n.id for n in await service.list_notices(people["landlord"])]
        assert seen == [mine.id]

    async def test_urgent_first(self, service_db, people):
        service = NoticeService(service_db)
        await service.create_notice(notice(), people["landlord"])
        urgent = await service.create_notice(notice(is_urgent=True), people["landlord"])
        rows = await service.list_notices(people["tenant"])
        assert rows[0].id == urgent.id
        only = await service.list_notices(people["tenant"], urgent_only=True)
        assert [n.id for n in only] == [urgent.id]


class TestNoticeWrites:
    async def test_tenants_cannot_send(self, service_db, people):
        with pytest.raises(AuthorizationFailure):
            await NoticeService(service_db).create_notice(notice(), people["tenant"])

    async def test_individual_recipient_must_be_tenant(self, service_db, people):
        with pytest.raises(ValidationFailure):
            await NoticeService(service_db).create_notice(
                notice(
                    recipient_type=RecipientType.INDIVIDUAL,
                    recipient_id=people["other_landlord"].id,
                ),
                people["landlord"],
            )

    async def test_property_notice_needs_visible_property(self, db, service_db, people):
        prop = await make_property(db, people["other_landlord"])
        with pytest.raises(NotFound):
            await NoticeService(service_db).create_notice(
                notice(recipient_type=RecipientType.PROPERTY, property_id=prop.id),
                people["landlord"],
            )

    async def test_mark_read_is_idempotent_and_per_reader(self, service_db, people):
        service = NoticeService(service_db)
        sent = await service.create_notice(notice(), people["landlord"])

        first = await service.mark_read(sent.id, people["tenant"])
        again = await service.mark_read(sent.id, people["tenant"])
        assert first.is_read and again.is_read
        assert again.read_count == 1

        other = await service.mark_read(sent.id, people["other_tenant"])
        assert other.read_count == 2
        assert other.read_status == {
            str(people["tenant"].id): True,
            str(people["other_tenant"].id): True,
        }

    async def test_only_sender_or_superadmin_deletes(self, service_db, people):
        service = NoticeService(service_db)
        sent = await service.create_notice(notice(), people["admin"])
        with pytest.raises(NotFound):
            await service.delete_notice(sent.id, people["landlord"])
        result = await service.delete_notice(sent.id, people["admin"])
        assert result["success"] is True
