import logging
import uuid
from typing import List

from mall_app.core.breaker import breaker
from mall_app.core.check_permission import CheckRolePermission
from mall_app.core.errors import AuthorizationFailure, NotFound, ValidationFailure
from mall_app.core.event_publish import publish_change
from mall_app.core.transaction import atomic
from mall_app.models.enums import ChangeEvent, RecipientType, UserRole
from mall_app.models.models import Notice
from mall_app.repos.notice_repo import NoticeRepo
from mall_app.repos.profile_repo import ProfileRepo
from mall_app.repos.property_repo import PropertyRepo
from mall_app.schemas.schema import NoticeCreate, NoticeOut

logger = logging.getLogger(__name__)


def read_count(notice: Notice) -> int:
    return sum(1 for value in (notice.read_status or {}).values() if value is True)


def notice_out(notice: Notice, reader_id: uuid.UUID) -> NoticeOut:
    read_status = dict(notice.read_status or {})
    return NoticeOut(
        id=notice.id,
        sender_id=notice.sender_id,
        title=notice.title,
        content=notice.content,
        recipient_type=notice.recipient_type,
        recipient_id=notice.recipient_id,
        property_id=notice.property_id,
        is_urgent=notice.is_urgent,
        read_status=read_status,
        read_count=read_count(notice),
        is_read=read_status.get(str(reader_id)) is True,
        created_at=notice.created_at,
    )


class NoticeService:
    def __init__(self, db):
        self.db = db
        self.repo: NoticeRepo = NoticeRepo(db)
        self.profile_repo: ProfileRepo = ProfileRepo(db)
        self.property_repo: PropertyRepo = PropertyRepo(db)
        self.permission: CheckRolePermission = CheckRolePermission()

    async def _check_recipient(self, payload: NoticeCreate, current_user):
        if payload.recipient_type == RecipientType.INDIVIDUAL:
            recipient = await self.profile_repo.get_by_id(payload.recipient_id)
            if not recipient or recipient.role != UserRole.TENANT:
                raise ValidationFailure("recipient_id must reference a tenant profile")
        elif payload.recipient_type == RecipientType.PROPERTY:
            prop = await self.property_repo.get_visible(current_user, payload.property_id)
            if not prop:
                raise NotFound("Property not found")

    async def create_notice(self, payload: NoticeCreate, current_user) -> NoticeOut:
        await self.permission.check_manager(current_user=current_user)

        async def _handler():
            await self._check_recipient(payload, current_user)
            notice = await self.repo.create(
                sender_id=current_user.id,
                title=payload.title,
                content=payload.content,
                recipient_type=payload.recipient_type,
                recipient_id=(
                    payload.recipient_id
                    if payload.recipient_type == RecipientType.INDIVIDUAL
                    else None
                ),
                property_id=(
                    payload.property_id
                    if payload.recipient_type == RecipientType.PROPERTY
                    else None
                ),
                is_urgent=payload.is_urgent,
                read_status={},
            )
            await self.repo.db_commit_and_refresh(notice)
            return notice

        notice = await breaker.call(atomic, self.db, _handler)
        await publish_change("notices", ChangeEvent.INSERT, notice.id)
        return notice_out(notice, current_user.id)

    async def mark_read(self, notice_id: uuid.UUID, current_user) -> NoticeOut:
        """Record the caller as a reader. Marks are never reset."""
        await self.permission.check_authenticated(current_user=current_user)
        reader_key = str(current_user.id)

        async def _handler():
            notice = await self.repo.get_visible(current_user, notice_id)
            if not notice:
                raise NotFound("Notice not found")
            current = dict(notice.read_status or {})
            if current.get(reader_key) is True:
                return notice, False
            current[reader_key] = True
            await self.repo.set_read_status(notice, current)
            await self.repo.db_commit_and_refresh(notice)
            return notice, True

        notice, changed = await breaker.call(atomic, self.db, _handler)
        if changed:
            await publish_change("notices", ChangeEvent.UPDATE, notice.id)
        return notice_out(notice, current_user.id)

    async def delete_notice(self, notice_id: uuid.UUID, current_user):
        await self.permission.check_manager(current_user=current_user)

        async def _handler():
            notice = await self.repo.get_visible(current_user, notice_id)
            if not notice:
                raise NotFound("Notice not found")
            if (
                current_user.role != UserRole.SUPERADMIN
                and notice.sender_id != current_user.id
            ):
                raise AuthorizationFailure("Only the sender can delete this notice")
            await self.repo.db_delete(notice)
            await self.repo.db_commit()

        await breaker.call(atomic, self.db, _handler)
        await publish_change("notices", ChangeEvent.DELETE, notice_id)
        return {"success": True, "message": "Notice deleted"}

    async def list_notices(self, current_user, urgent_only: bool = False) -> List[NoticeOut]:
        await self.permission.check_authenticated(current_user=current_user)

        async def _handler():
            return await self.repo.list_visible(current_user, urgent_only=urgent_only)

        rows = await breaker.call(_handler)
        return [notice_out(row, current_user.id) for row in rows]
