"""
FastAPI server exposing scan results, trade logs, dashboard stats and
runtime bot settings.

The app holds one ScanEngine and one trade log on `app.state`. Every
opportunities request triggers a fresh scan bounded by the engine's
request deadline.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Any

import orjson
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from crossarb.config.settings import BotSettingsUpdate, Settings, get_settings
from crossarb.core.engine import ScanEngine
from crossarb.core.errors import (
    IntentValidationError,
    NoVenuesAvailableError,
    ScanTimeoutError,
    SnapshotMismatchError,
)
from crossarb.core.types import TradeStatus
from crossarb.storage.trade_log import InMemoryTradeLog


logger = logging.getLogger(__name__)


# Dashboard risk score shown per configured risk level
RISK_LEVEL_SCORES: dict[str, int] = {"low": 10, "medium": 45, "high": 85}


class OrjsonResponse(JSONResponse):
    """JSON response rendered with orjson."""

    def render(self, content: Any) -> bytes:
        return orjson.dumps(content)


class SimulateTradeRequest(BaseModel):
    """Body of a simulated trade request."""

    pair: str = Field(..., min_length=3, description="Unified symbol, e.g. BTC/USDT")
    buy_exchange: str | None = Field(default=None, description="Restrict to this buy venue")
    sell_exchange: str | None = Field(default=None, description="Restrict to this sell venue")
    trade_amount: Decimal | None = Field(default=None, description="Notional in quote currency")


# =============================================================================
# App factory
# =============================================================================


def create_app(
    engine: ScanEngine | None = None,
    trade_log: InMemoryTradeLog | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """
    Build the API application.

    Args:
        engine: Scan engine. Built from settings on startup if omitted.
        trade_log: Trade log store. A fresh in-memory log if omitted.
        settings: Settings used when building the engine.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = engine is None
        app.state.engine = engine or ScanEngine(settings or get_settings())
        app.state.trade_log = trade_log or InMemoryTradeLog()
        if owned:
            await app.state.engine.setup()
        yield
        if owned:
            await app.state.engine.shutdown()

    app = FastAPI(
        title="Cross-Exchange Arbitrage Monitor",
        version="1.0.0",
        lifespan=lifespan,
        default_response_class=OrjsonResponse,
    )

    app.exception_handler(IntentValidationError)(_intent_error)
    app.exception_handler(RequestValidationError)(_request_validation_error)
    app.exception_handler(NoVenuesAvailableError)(_no_venues_error)
    app.exception_handler(ScanTimeoutError)(_timeout_error)
    app.exception_handler(SnapshotMismatchError)(_mismatch_error)

    app.get("/api/opportunities")(get_opportunities)
    app.post("/api/trades/simulate")(simulate_trade)
    app.get("/api/logs")(get_logs)
    app.get("/api/logs/{record_id}")(get_log)
    app.get("/api/dashboard/stats")(get_dashboard_stats)
    app.get("/api/status")(get_status)
    app.get("/api/settings")(get_bot_settings)
    app.post("/api/settings")(update_bot_settings)
    app.get("/api/platforms")(get_platforms)
    return app


# =============================================================================
# Error mapping
# =============================================================================


async def _intent_error(request: Request, exc: IntentValidationError) -> OrjsonResponse:
    return OrjsonResponse(status_code=400, content={"message": exc.message, "field": exc.field})


async def _request_validation_error(
    request: Request,
    exc: RequestValidationError,
) -> OrjsonResponse:
    errors = [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": str(err.get("msg", ""))}
        for err in exc.errors()
    ]
    return OrjsonResponse(status_code=400, content={"message": "Invalid request", "errors": errors})


async def _no_venues_error(request: Request, exc: Exception) -> OrjsonResponse:
    logger.warning(f"Scan request failed: {exc}")
    return OrjsonResponse(status_code=503, content={"message": str(exc)})


async def _timeout_error(request: Request, exc: Exception) -> OrjsonResponse:
    return OrjsonResponse(status_code=504, content={"message": str(exc)})


async def _mismatch_error(request: Request, exc: Exception) -> OrjsonResponse:
    logger.error(f"Inconsistent snapshot cycle: {exc}")
    return OrjsonResponse(status_code=500, content={"message": str(exc)})


# =============================================================================
# Routes
# =============================================================================


async def get_opportunities(
    request: Request,
    pair: str | None = Query(default=None, description="Focus on one pair"),
    trade_amount: Decimal | None = Query(default=None, description="Notional in quote currency"),
    min_profit: Decimal | None = Query(default=None, description="Availability threshold, percent"),
) -> dict[str, Any]:
    engine: ScanEngine = request.app.state.engine
    intent = engine.trade_intent(
        pair=pair,
        trade_amount_quote=trade_amount,
        min_profit_percentage=min_profit,
    )
    result = await engine.scan(intent)
    return result.to_dict()


async def simulate_trade(request: Request, body: SimulateTradeRequest) -> dict[str, Any]:
    engine: ScanEngine = request.app.state.engine
    trade_log: InMemoryTradeLog = request.app.state.trade_log

    intent = engine.trade_intent(pair=body.pair, trade_amount_quote=body.trade_amount)
    result = await engine.scan(intent)

    candidates = [
        o
        for o in result.opportunities
        if (body.buy_exchange is None or o.buy_exchange == body.buy_exchange.lower())
        and (body.sell_exchange is None or o.sell_exchange == body.sell_exchange.lower())
    ]
    if not candidates:
        raise HTTPException(status_code=404, detail=f"No opportunity for {intent.pair}")

    record = trade_log.record_opportunity(candidates[0])
    logger.info(
        f"Simulated {record.pair} {record.buy_exchange}->{record.sell_exchange} "
        f"profit {record.profit_quote} (trade #{record.id})"
    )
    return record.to_dict()


async def get_logs(
    request: Request,
    limit: int | None = Query(default=None, ge=1, le=1000),
    status: TradeStatus | None = Query(default=None),
) -> list[dict[str, Any]]:
    trade_log: InMemoryTradeLog = request.app.state.trade_log
    return [record.to_dict() for record in trade_log.list(limit=limit, status=status)]


async def get_log(request: Request, record_id: int) -> dict[str, Any]:
    trade_log: InMemoryTradeLog = request.app.state.trade_log
    record = trade_log.get(record_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Trade #{record_id} not found")
    return record.to_dict()


async def get_dashboard_stats(request: Request) -> dict[str, Any]:
    engine: ScanEngine = request.app.state.engine
    trade_log: InMemoryTradeLog = request.app.state.trade_log

    stats = trade_log.dashboard_stats().to_dict()
    bot = engine.bot_settings
    stats["active_bots"] = 1 if bot.is_active or engine.is_running else 0
    stats["risk_score"] = RISK_LEVEL_SCORES[bot.risk_level]
    return stats


async def get_status(request: Request) -> dict[str, Any]:
    engine: ScanEngine = request.app.state.engine
    return engine.status()


async def get_bot_settings(request: Request) -> dict[str, Any]:
    engine: ScanEngine = request.app.state.engine
    return engine.bot_settings.to_dict()


async def update_bot_settings(request: Request, body: BotSettingsUpdate) -> dict[str, Any]:
    engine: ScanEngine = request.app.state.engine
    return engine.update_bot_settings(body).to_dict()


async def get_platforms(request: Request) -> list[dict[str, Any]]:
    engine: ScanEngine = request.app.state.engine
    return engine.platforms()


def main() -> None:
    import uvicorn

    settings = get_settings()
    print(
        f"""
╔{"═" * 63}╗
║{"CROSS-EXCHANGE ARBITRAGE MONITOR - API":^63}║
╚{"═" * 63}╝

API: http://{settings.api_host}:{settings.api_port}/docs
Press Ctrl+C to stop.
    """
    )
    uvicorn.run(
        create_app(settings=settings),
        host=settings.api_host,
        port=settings.api_port,
        log_level="warning",
    )


if __name__ == "__main__":
    main()
