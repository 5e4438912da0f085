"""
HTTP app — FastAPI routes over the engine.

    app = create_app(CheckoutDeps(stock_lookup=stock, gateway=orders, coupon_lookup=coupons))
    # uvicorn module:app

Every route answers with the authoritative corrected cart, whatever the
client sent.
"""

import logging

import fastapi
from fastapi.responses import JSONResponse
from kungfu import Error, Ok

from cartsync._errors import CartsyncError, InvalidTransition, UnknownCurrency
from cartsync.checkout import (
    CheckoutBlocked,
    CheckoutDeps,
    FailureKind,
    Notice,
    NoticeCode,
)
from cartsync.http._models import CouponIn, QuoteIn, QuoteOut, SubmitIn, SubmitOut
from cartsync.quote import build_quote

logger = logging.getLogger(__name__)

_FAILURE_STATUS = {
    FailureKind.CREATE_ORDER_FAILED: 502,
    FailureKind.CONFLICT: 409,
    FailureKind.STORE_ERROR: 503,
}


def _error_status(exc: CartsyncError) -> int:
    match exc:
        case UnknownCurrency():
            return 422
        case InvalidTransition():
            return 409
        case _:
            return 400


def create_app(deps: CheckoutDeps) -> fastapi.FastAPI:
    app = fastapi.FastAPI(title="cartsync")
    app.state.deps = deps

    @app.exception_handler(CartsyncError)
    async def _engine_error(request: fastapi.Request, exc: CartsyncError) -> JSONResponse:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)
        return JSONResponse(
            status_code=_error_status(exc),
            content={"code": exc.code, "message": exc.message},
        )

    @app.post("/cart/quote")
    async def quote(req: QuoteIn) -> QuoteOut:
        return QuoteOut.from_domain(await build_quote(req.to_domain(deps)))

    @app.post("/cart/coupon")
    async def apply_coupon(req: CouponIn) -> QuoteOut:
        if deps.coupon_lookup is None:
            raise CartsyncError("NO_COUPON_LOOKUP", "coupons are not configured for this storefront")
        return QuoteOut.from_domain(await build_quote(req.to_domain(deps)))

    @app.post("/checkout/submit")
    async def submit(req: SubmitIn, response: fastapi.Response) -> SubmitOut:
        session = req.to_domain(deps)

        extra: tuple[Notice, ...] = ()
        if req.coupon_code and deps.coupon_lookup is not None:
            match await session.apply_coupon(req.coupon_code):
                case Error(rejected):
                    extra = (Notice(NoticeCode.COUPON_DROPPED, rejected.message, level="warning"),)
                case Ok(_):
                    pass

        result = await session.submit()
        match result:
            case Ok(_):
                response.status_code = 201
            case Error(CheckoutBlocked()):
                response.status_code = 422
            case Error(failure):
                response.status_code = _FAILURE_STATUS[failure.kind]

        return SubmitOut.from_domain(session, result, extra)

    return app


__all__ = ("create_app",)
