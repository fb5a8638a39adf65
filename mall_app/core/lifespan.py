import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from mall_app.models.models import CurrencySettings

from .date_helper import utc_now
from .get_db import AsyncSessionLocal, async_engine
from .settings import settings

logger = logging.getLogger(__name__)


@retry(
    retry=retry_if_exception_type((OperationalError, ConnectionError)),
    stop=stop_after_attempt(5),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
async def seed_currency_settings(session_factory=AsyncSessionLocal):
    """Make sure the singleton exchange-rate row exists."""
    async with session_factory() as session:
        result = await session.execute(
            select(CurrencySettings).where(
                CurrencySettings.base_currency == settings.BASE_CURRENCY
            )
        )
        existing = result.scalar_one_or_none()
        if existing is not None:
            logger.info(
                f"Exchange rate loaded: 1 USD = {existing.exchange_rate_usd_to_ugx} UGX"
            )
            return existing

        row = CurrencySettings(
            base_currency=settings.BASE_CURRENCY,
            exchange_rate_usd_to_ugx=settings.DEFAULT_EXCHANGE_RATE,
            last_updated=utc_now(),
        )
        session.add(row)
        await session.commit()
        logger.info(f"Seeded exchange rate: 1 USD = {settings.DEFAULT_EXCHANGE_RATE} UGX")
        return row


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.PROJECT_NAME}")
    await seed_currency_settings()
    yield
    await async_engine.dispose()
    logger.info("Database engine disposed")
