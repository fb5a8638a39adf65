from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from mall_app.core.get_current_user import get_current_user
from mall_app.core.get_db import get_db_async
from mall_app.core.safe_handler import safe_handler
from mall_app.models.enums import Currency
from mall_app.models.models import Profile
from mall_app.schemas.schema import (
    ConversionOut,
    CurrencySettingsOut,
    ExchangeRateIn,
    FormattedAmountOut,
)
from mall_app.services.currency_service import (
    CurrencyService,
    convert_amount,
    format_amount,
)

router = APIRouter(tags=["Currency"])


@cbv(router=router)
class CurrencyRoutes:
    @router.get("/settings", response_model=CurrencySettingsOut)
    @safe_handler
    async def get_settings(
        self,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await CurrencyService(db).get_settings()

    @router.put("/rate", response_model=CurrencySettingsOut)
    @safe_handler
    async def update_rate(
        self,
        payload: ExchangeRateIn,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await CurrencyService(db).update_rate(
            new_rate=payload.exchange_rate_usd_to_ugx, current_user=current_user
        )

    @router.get("/convert", response_model=ConversionOut)
    @safe_handler
    async def convert(
        self,
        amount: Decimal,
        from_currency: Currency = Query(..., alias="from"),
        to_currency: Currency = Query(..., alias="to"),
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        rate = await CurrencyService(db).get_rate()
        converted = convert_amount(amount, from_currency, to_currency, rate)
        return ConversionOut(
            amount=amount,
            from_currency=from_currency,
            to_currency=to_currency,
            rate=rate,
            converted=converted,
            formatted=format_amount(converted, to_currency),
        )

    @router.get("/format", response_model=FormattedAmountOut)
    @safe_handler
    async def format_display(
        self,
        amount: Decimal,
        currency: Currency,
        current_user: Profile = Depends(get_current_user),
    ):
        return FormattedAmountOut(
            amount=amount, currency=currency, formatted=format_amount(amount, currency)
        )
