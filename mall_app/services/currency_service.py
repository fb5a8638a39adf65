import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from mall_app.core.breaker import breaker
from mall_app.core.check_permission import CheckRolePermission
from mall_app.core.date_helper import utc_now
from mall_app.core.errors import (
    BackendUnavailable,
    CurrencyConfigurationError,
    ValidationFailure,
)
from mall_app.core.event_publish import publish_change
from mall_app.core.settings import settings
from mall_app.core.transaction import atomic
from mall_app.models.enums import ChangeEvent, Currency
from mall_app.repos.currency_repo import CurrencyRepo
from mall_app.repos.profile_repo import ProfileRepo
from mall_app.schemas.schema import CurrencySettingsOut

logger = logging.getLogger(__name__)

# UGX has no minor unit in practical use
DECIMAL_PLACES = {Currency.USD: 2, Currency.UGX: 0}
SYMBOLS = {Currency.USD: "$", Currency.UGX: "UGX "}


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValidationFailure(f"Invalid amount: {value!r}") from e


def parse_currency(value) -> Currency:
    if isinstance(value, Currency):
        return value
    try:
        return Currency(str(value).upper())
    except ValueError:
        allowed = ", ".join(c.value for c in Currency)
        raise ValidationFailure(f"Unsupported currency {value!r}. Allowed: {allowed}")


def validate_rate(rate) -> Decimal:
    rate = to_decimal(rate)
    if not rate.is_finite() or rate <= 0:
        raise CurrencyConfigurationError(
            f"Exchange rate must be a positive number, got {rate}"
        )
    return rate


def convert_amount(amount, from_currency, to_currency, rate) -> Decimal:
    amount = to_decimal(amount)
    from_currency = parse_currency(from_currency)
    to_currency = parse_currency(to_currency)
    if from_currency == to_currency:
        return amount

    rate = validate_rate(rate)
    if from_currency == Currency.USD and to_currency == Currency.UGX:
        return amount * rate
    return amount / rate


def round_amount(amount, currency) -> Decimal:
    currency = parse_currency(currency)
    exponent = Decimal(1).scaleb(-DECIMAL_PLACES[currency])
    return to_decimal(amount).quantize(exponent, rounding=ROUND_HALF_UP)


def format_amount(amount, currency) -> str:
    """Render ``amount`` the way the dashboard displays money.

    USD keeps exactly two decimals (``$1,234.50``); UGX is rounded half-up
    to whole shillings (``UGX 1,235``).
    """
    currency = parse_currency(currency)
    rounded = round_amount(amount, currency)
    places = DECIMAL_PLACES[currency]
    sign = "-" if rounded < 0 else ""
    return f"{sign}{SYMBOLS[currency]}{abs(rounded):,.{places}f}"


class CurrencyService:
    def __init__(self, db):
        self.db = db
        self.repo: CurrencyRepo = CurrencyRepo(db)
        self.profile_repo: ProfileRepo = ProfileRepo(db)
        self.permission: CheckRolePermission = CheckRolePermission()

    async def get_rate(self) -> Decimal:
        try:
            row = await breaker.call(self.repo.get)
        except BackendUnavailable as e:
            logger.warning(
                "Exchange rate unavailable (%s); using default %s",
                e.reason,
                settings.DEFAULT_EXCHANGE_RATE,
            )
            return settings.DEFAULT_EXCHANGE_RATE
        if row is None or row.exchange_rate_usd_to_ugx is None:
            return settings.DEFAULT_EXCHANGE_RATE
        return to_decimal(row.exchange_rate_usd_to_ugx)

    async def get_settings(self) -> CurrencySettingsOut:
        async def handler():
            row = await self.repo.get()
            if row is None:
                return CurrencySettingsOut(
                    base_currency=settings.BASE_CURRENCY,
                    exchange_rate_usd_to_ugx=settings.DEFAULT_EXCHANGE_RATE,
                    last_updated=None,
                    updated_by=None,
                    is_default=True,
                )
            return CurrencySettingsOut.model_validate(row)

        return await breaker.call(handler)

    async def convert(self, amount, from_currency, to_currency) -> Decimal:
        rate = await self.get_rate()
        return convert_amount(amount, from_currency, to_currency, rate)

    async def update_rate(self, new_rate, current_user) -> CurrencySettingsOut:
        await self.permission.check_superadmin(current_user=current_user)
        rate = validate_rate(new_rate)

        async def handler():
            row = await self.repo.upsert_rate(
                rate=rate, updated_by=current_user.id, updated_at=utc_now()
            )
            await self.repo.db_commit_and_refresh(row)
            return row

        row = await breaker.call(atomic, self.db, handler)
        logger.info("Exchange rate set to 1 USD = %s UGX by %s", rate, current_user.id)
        await publish_change("currency_settings", ChangeEvent.UPDATE, row.id)
        return CurrencySettingsOut.model_validate(row)

    async def set_preferred_currency(self, currency, current_user):
        await self.permission.check_authenticated(current_user=current_user)
        currency = parse_currency(currency)

        async def handler():
            profile = await self.profile_repo.update_fields(
                current_user.id, preferred_currency=currency
            )
            await self.profile_repo.db_commit()
            return profile

        profile = await breaker.call(atomic, self.db, handler)
        await publish_change("profiles", ChangeEvent.UPDATE, profile.id)
        return profile
