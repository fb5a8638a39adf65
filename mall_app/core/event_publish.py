import logging
import uuid

from mall_app.models.enums import ChangeEvent
from mall_app.realtime.connection_manager import manager

from .date_helper import utc_now

logger = logging.getLogger(__name__)

TABLES = {
    "profiles",
    "properties",
    "leases",
    "lease_renewal_requests",
    "payments",
    "maintenance_requests",
    "notices",
    "currency_settings",
    "payment_methods",
}


async def publish_change(table: str, event: ChangeEvent, row_id: uuid.UUID | None):
    """Tell subscribers that ``table`` changed so they re-fetch.

    Called only after the write committed; the payload carries no row data,
    subscribers re-read through their own scoped queries.
    """
    if table not in TABLES:
        raise ValueError(f"Unknown table {table!r}")
    payload = {
        "table": table,
        "event": event.value,
        "id": str(row_id) if row_id else None,
        "at": utc_now().isoformat(),
    }
    logger.debug(f"change event {payload}")
    await manager.broadcast(table, payload)
    return payload
