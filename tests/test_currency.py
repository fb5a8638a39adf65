from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from mall_app.core.errors import (
    AuthorizationFailure,
    BackendUnavailable,
    CurrencyConfigurationError,
    ValidationFailure,
)
from mall_app.models.enums import Currency, UserRole
from mall_app.repos.currency_repo import CurrencyRepo
from mall_app.services.currency_service import (
    CurrencyService,
    convert_amount,
    format_amount,
)
from tests.factories import make_profile, set_rate


class TestConvertAmount:
    @pytest.mark.parametrize("currency", [Currency.USD, Currency.UGX])
    def test_same_currency_is_identity(self, currency):
        assert convert_amount(Decimal("1234.56"), currency, currency, 3700) == Decimal(
            "1234.56"
        )

    def test_usd_to_ugx_multiplies(self):
        assert convert_amount(10, "USD", "UGX", Decimal("3700")) == Decimal("37000")

    def test_ugx_to_usd_divides(self):
        assert convert_amount(37000, "UGX", "USD", Decimal("3700")) == Decimal("10")

    def test_round_trip_within_rounding(self):
        x = Decimal("99.99")
        there = convert_amount(x, Currency.USD, Currency.UGX, Decimal("3812.5"))
        back = convert_amount(there, Currency.UGX, Currency.USD, Decimal("3812.5"))
        assert abs(back - x) < Decimal("0.000001")

    @pytest.mark.parametrize("rate", [0, -5, "0"])
    def test_non_positive_rate_is_a_configuration_error(self, rate):
        with pytest.raises(CurrencyConfigurationError):
            convert_amount(100, Currency.UGX, Currency.USD, rate)

    def test_identity_never_needs_a_rate(self):
        assert convert_amount(5, "UGX", "UGX", 0) == Decimal("5")

    def test_unknown_currency_rejected(self):
        with pytest.raises(ValidationFailure):
            convert_amount(5, "EUR", "USD", 3700)


class TestFormatAmount:
    def test_usd_has_two_decimals(self):
        assert format_amount(1234.5, "USD") == "$1,234.50"

    def test_ugx_has_no_decimals(self):
        formatted = format_amount(1234.5, "UGX")
        assert formatted == "UGX 1,235"
        assert "." not in formatted

    def test_rounds_half_up_instead_of_truncating(self):
        assert format_amount(Decimal("0.005"), "USD") == "$0.01"
        assert format_amount(Decimal("2499.5"), "UGX") == "UGX 2,500"

    def test_converted_ugx_is_rounded_before_formatting(self):
        converted = convert_amount(Decimal("10.33"), "USD", "UGX", Decimal("3700.7"))
        assert format_amount(converted, "UGX") == "UGX 38,228"

    def test_negative_amounts_lead_with_minus(self):
        assert format_amount(Decimal("-50"), "USD") == "-$50.00"

    def test_large_ugx_amounts_group_thousands(self):
        assert format_amount(Decimal("4440000"), Currency.UGX) == "UGX 4,440,000"


class TestCurrencyService:
    async def test_rate_falls_back_to_default_without_row(self, db):
        assert await CurrencyService(db).get_rate() == Decimal("3700")

    async def test_rate_read_from_settings_row(self, db):
        await set_rate(db, "3650")
        assert await CurrencyService(db).get_rate() == Decimal("3650")

    async def test_rate_falls_back_when_backend_unavailable(self, db, monkeypatch):
        async def broken(self):
            raise OperationalError("select", {}, ConnectionError("down"))

        monkeypatch.setattr(CurrencyRepo, "get", broken)
        assert await CurrencyService(db).get_rate() == Decimal("3700")

    @pytest.mark.parametrize("rate", [0, -5])
    async def test_update_rejects_non_positive(self, db, people, rate):
        with pytest.raises(CurrencyConfigurationError):
            await CurrencyService(db).update_rate(rate, people["admin"])

    async def test_update_then_convert_uses_new_rate(self, db, people):
        service = CurrencyService(db)
        out = await service.update_rate(3800, people["admin"])
        assert out.exchange_rate_usd_to_ugx == Decimal("3800")
        assert out.updated_by == people["admin"].id
        assert await service.convert(1, Currency.USD, Currency.UGX) == Decimal("3800")

    async def test_update_is_a_single_row_upsert(self, db, people):
        service = CurrencyService(db)
        await service.update_rate(3800, people["admin"])
        await service.update_rate(3900, people["admin"])
        row = await CurrencyRepo(db).get()
        assert row.exchange_rate_usd_to_ugx == Decimal("3900")

    async def test_failed_update_rolls_back(self, db, service_db, people, monkeypatch):
        await set_rate(db, "3650")

        async def lost_commit(self, obj):
            raise OperationalError("commit", {}, ConnectionError("down"))

        monkeypatch.setattr(CurrencyRepo, "db_commit_and_refresh", lost_commit)
        service = CurrencyService(service_db)
        with pytest.raises(BackendUnavailable):
            await service.update_rate(3900, people["admin"])
        monkeypatch.undo()
        assert await service.get_rate() == Decimal("3650")

    async def test_only_superadmin_updates_rate(self, db, people):
        with pytest.raises(AuthorizationFailure):
            await CurrencyService(db).update_rate(3800, people["landlord"])

    async def test_preferred_currency_is_stored_on_profile(self, db):
        tenant = await make_profile(db, UserRole.TENANT)
        profile = await CurrencyService(db).set_preferred_currency("ugx", tenant)
        assert profile.preferred_currency == Currency.UGX
