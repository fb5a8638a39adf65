from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .errors import DashboardError


class ValidationErrorHandler:
    async def __call__(self, request: Request, exc: RequestValidationError):

        errors = []

        for err in exc.errors():
            errors.append({
                "loc": err.get("loc"),
                "msg": str(err.get("msg")),
                "type": err.get("type"),
            })

        return JSONResponse(
            status_code=422,
            content={
                "success": False,
                "error": "validation_error",
                "reason": "Request validation failed",
                "retryable": False,
                "details": errors,
            },
        )


class DomainErrorHandler:
    async def __call__(self, request: Request, exc: DashboardError):
        headers = {"Retry-After": "5"} if exc.retryable else None
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(),
            headers=headers,
        )
