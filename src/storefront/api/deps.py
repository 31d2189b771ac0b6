"""Request-scoped dependencies and the mapping from service outcomes to HTTP errors."""

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError

from storefront.shared.actor import Actor, ActorRole
from storefront.shared.results import ErrorCode, Result

_STATUS_BY_CODE = {
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.INSUFFICIENT_STOCK: 409,
    ErrorCode.INVALID_TRANSITION: 409,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.EMPTY_CART: 400,
    ErrorCode.VALIDATION_FAILED: 422,
}


def current_actor(
    x_actor_id: str | None = Header(None),
    x_actor_role: str | None = Header(None),
) -> Actor | None:
    """The caller as identified by the authentication layer in front of the API."""
    if not x_actor_id:
        return None
    try:
        role = ActorRole((x_actor_role or ActorRole.CUSTOMER.value).lower())
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown actor role {x_actor_role!r}")
    return Actor(id=x_actor_id, role=role)


def require_admin(actor: Actor | None = Depends(current_actor)) -> Actor:
    if actor is None or not actor.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return actor


def unwrap(result: Result):
    """The result's value, or the matching HTTP error."""
    if result.ok:
        return result.value
    raise HTTPException(
        status_code=_STATUS_BY_CODE[result.code],
        detail={
            "code": result.code.value,
            "message": result.message,
            "details": result.error.details,
        },
    )


async def _validation_error(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"code": "validation_failed", "errors": exc.messages})


async def _not_found(request: Request, exc: ObjectNotFoundError):
    return JSONResponse(status_code=404, content={"code": "not_found", "message": str(exc)})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, _validation_error)
    app.add_exception_handler(ObjectNotFoundError, _not_found)
