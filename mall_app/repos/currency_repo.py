import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import select

from mall_app.core.settings import settings
from mall_app.models.models import CurrencySettings

from .base_repo import BaseRepo


class CurrencyRepo(BaseRepo):
    async def get(self) -> Optional[CurrencySettings]:
        result = await self.db.execute(
            select(CurrencySettings).where(
                CurrencySettings.base_currency == settings.BASE_CURRENCY
            )
        )
        return result.scalar_one_or_none()

    async def upsert_rate(
        self,
        rate: Decimal,
        updated_by: uuid.UUID | None,
        updated_at: datetime,
    ) -> CurrencySettings:
        row = await self.get()
        if row is None:
            row = CurrencySettings(base_currency=settings.BASE_CURRENCY)
            self.db.add(row)
        row.exchange_rate_usd_to_ugx = rate
        row.last_updated = updated_at
        row.updated_by = updated_by
        await self.db.flush()
        return row
