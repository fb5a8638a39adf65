from mall_app.core.date_helper import utc_now
from mall_app.core.errors import LifecycleConflict
from mall_app.models.enums import MaintenanceStatus

ORDER = {
    MaintenanceStatus.PENDING: 0,
    MaintenanceStatus.IN_PROGRESS: 1,
    MaintenanceStatus.COMPLETED: 2,
}


def can_transition(current: MaintenanceStatus, new: MaintenanceStatus, allow_reopen=False):
    if ORDER[new] >= ORDER[current]:
        return True
    return allow_reopen


def apply_status(request, new_status: MaintenanceStatus, allow_reopen: bool = False):
    """Move ``request`` to ``new_status`` keeping ``completed_at`` consistent.

    Forward moves (including skips) are always allowed. Backward moves are a
    reopen and need ``allow_reopen``.
    """
    current = request.status
    if not can_transition(current, new_status, allow_reopen):
        raise LifecycleConflict(
            f"Cannot move a maintenance request from {current.value} back to {new_status.value}"
        )

    request.status = new_status
    if new_status == MaintenanceStatus.COMPLETED:
        if current != MaintenanceStatus.COMPLETED or request.completed_at is None:
            request.completed_at = utc_now()
    else:
        request.completed_at = None
    return request
