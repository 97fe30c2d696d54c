# track_monitor/services/track_ingest/app.py
"""
FastAPI приложение Track Ingest.

Приём фиксов от бортовых модулей и рассылка позиций наблюдателям.

Endpoints:
- POST /track - принять NMEA-фикс машины
- POST /sos - SOS от машины (+ предупреждение машине позади)
- POST /ok - статус OK от машины
- GET /api/v1/track - точки трассы
- GET /api/v1/vehicles - все машины
- GET /api/v1/vehicles/{vehicle_id} - позиция машины
- WS /ws - поток событий для наблюдателей
"""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, field_validator

from track_monitor.common.constants import TypeMsg
from track_monitor.common.logger import log_error, log_info, setup_logging
from track_monitor.config.loader import Settings
from track_monitor.core.alerts import AlertDispatcher
from track_monitor.core.positions import TrackPositionEngine
from track_monitor.core.track import TrackPath
from track_monitor.infra.redis_client import RedisClient
from track_monitor.services.realtime_ws import Broadcaster, ConnectionManager
from track_monitor.services.track_ingest.dependencies import (
    get_broadcaster,
    get_connection_manager,
    get_dispatcher,
    get_engine,
    get_ingest_service,
)
from track_monitor.services.track_ingest.service import TrackIngestService
from track_monitor.shared.exceptions import ConfigurationError, MalformedInputError, TrackMonitorError
from track_monitor.shared.models import (
    AlertRecord,
    ErrorResponse,
    HealthStatus,
    PositionRecord,
    StatusRecord,
)


SERVICE_NAME = "track_ingest"


# === MODELS ===

class _VehicleRequest(BaseModel):
    """Базовый запрос от машины (carId может прийти числом)."""
    vehicle_id: str | None = Field(default=None, alias="carId")

    class Config:
        populate_by_name = True

    @field_validator("vehicle_id", mode="before")
    @classmethod
    def coerce_vehicle_id(cls, v: Any) -> Any:
        """Приводит числовой идентификатор к строке."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class TrackSubmission(_VehicleRequest):
    """Фикс от бортового модуля."""
    nmea: str | None = None


class MessageSubmission(_VehicleRequest):
    """SOS или статус от машины."""
    message: str | None = None


class TrackResponse(BaseModel):
    """Ответ на приём фикса."""
    msg: str
    changed: bool
    record: PositionRecord


class SosResponse(BaseModel):
    """Ответ на SOS."""
    message: str
    alert: AlertRecord
    warning: AlertRecord | None = None


class OkResponse(BaseModel):
    """Ответ на статус OK."""
    ok_message: StatusRecord = Field(alias="okMessage")
    message: str

    class Config:
        populate_by_name = True


class TrackPointResponse(BaseModel):
    """Точка трассы."""
    index: int
    lat: float
    lng: float


# === LIFESPAN ===

async def _eviction_loop(engine: TrackPositionEngine, interval: float) -> None:
    """Периодически удалять машины без фиксов."""
    while True:
        await asyncio.sleep(interval)
        await engine.evict_stale()


def create_app(
    track_path: TrackPath | None = None,
    app_settings: Settings | None = None,
) -> FastAPI:
    """
    Собрать приложение.

    Args:
        track_path: Готовая трасса (по умолчанию грузится из TRACK_FILE_PATH)
        app_settings: Настройки (по умолчанию глобальные)
    """
    if app_settings is None:
        from track_monitor.config import settings as app_settings

    cfg = app_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Жизненный цикл приложения."""
        setup_logging()

        # Startup
        try:
            path = track_path or TrackPath.load(cfg.track.track_path)
        except ConfigurationError as e:
            await log_error(f"Трасса не загружена: {e.message}")
            raise
        await log_info(f"Трасса загружена: {len(path)} точек")

        engine = TrackPositionEngine(
            path,
            tolerance=cfg.track.POSITION_TOLERANCE_DEG,
            vehicle_ttl_seconds=cfg.track.VEHICLE_TTL_SECONDS,
        )
        manager = ConnectionManager(queue_size=cfg.broadcast.OBSERVER_QUEUE_SIZE)

        redis: RedisClient | None = None
        if cfg.redis.REDIS_ENABLED:
            redis = RedisClient()
            await redis.connect(cfg.redis.url)

        broadcaster = Broadcaster(
            manager,
            redis=redis,
            channel_prefix=cfg.redis.REDIS_CHANNEL_PREFIX,
            queue_size=cfg.broadcast.BROADCAST_QUEUE_SIZE,
        )
        await broadcaster.start()

        app.state.engine = engine
        app.state.manager = manager
        app.state.broadcaster = broadcaster
        app.state.redis = redis
        app.state.ingest_service = TrackIngestService(engine, broadcaster)
        app.state.dispatcher = AlertDispatcher(engine, broadcaster)
        app.state.started_at = time.monotonic()

        eviction_task: asyncio.Task | None = None
        if cfg.track.VEHICLE_TTL_SECONDS > 0:
            eviction_task = asyncio.create_task(
                _eviction_loop(engine, cfg.track.EVICTION_INTERVAL_SECONDS)
            )

        await log_info(f"{SERVICE_NAME} запущен", type_msg=TypeMsg.INFO)

        yield

        # Shutdown
        if eviction_task:
            eviction_task.cancel()
            try:
                await eviction_task
            except asyncio.CancelledError:
                pass
        await broadcaster.stop()
        await manager.close_all()
        if redis:
            await redis.disconnect()

        await log_info(f"{SERVICE_NAME} остановлен", type_msg=TypeMsg.INFO)

    app = FastAPI(
        title="Track Ingest",
        description="Приём GPS-фиксов машин и рассылка позиций на замкнутой трассе.",
        version=cfg.system.VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.server.CORS_ORIGINS,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    # === ERROR HANDLERS ===

    @app.exception_handler(TrackMonitorError)
    async def track_monitor_error_handler(request: Request, exc: TrackMonitorError) -> JSONResponse:
        """Доменные ошибки -> ErrorResponse."""
        if exc.status_code >= 500:
            await log_error(f"{request.method} {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error_code=exc.error_code,
                message=exc.message,
                details=exc.details,
            ).model_dump(),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Тело запроса не разобрано -> 400 malformed_input."""
        errors = [
            {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", ""), "type": err.get("type", "")}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=MalformedInputError.status_code,
            content=ErrorResponse(
                error_code=MalformedInputError.error_code,
                message="Некорректное тело запроса",
                details={"errors": errors},
            ).model_dump(),
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        """Непредвиденные ошибки -> 500 internal_error."""
        await log_error(f"{request.method} {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error_code="internal_error",
                message="Внутренняя ошибка сервера",
            ).model_dump(),
        )

    # === HEALTH CHECK ===

    @app.get("/health", response_model=HealthStatus, tags=["Health"])
    async def health_check(request: Request) -> HealthStatus:
        """Проверка здоровья сервиса."""
        dependencies: dict[str, str] = {}
        redis: RedisClient | None = getattr(request.app.state, "redis", None)
        if redis is not None:
            dependencies["redis"] = "healthy" if await redis.health_check() else "unhealthy"

        started_at = getattr(request.app.state, "started_at", None)
        return HealthStatus(
            status="healthy" if "unhealthy" not in dependencies.values() else "degraded",
            service=SERVICE_NAME,
            version=cfg.system.VERSION,
            uptime_seconds=round(time.monotonic() - started_at, 3) if started_at else None,
            dependencies=dependencies,
        )

    # === STATS ===

    @app.get("/stats", tags=["Stats"])
    async def get_stats(
        engine: TrackPositionEngine = Depends(get_engine),
        service: TrackIngestService = Depends(get_ingest_service),
        dispatcher: AlertDispatcher = Depends(get_dispatcher),
        broadcaster: Broadcaster = Depends(get_broadcaster),
        manager: ConnectionManager = Depends(get_connection_manager),
    ) -> dict[str, Any]:
        """Получить статистику сервиса."""
        return {
            "engine": engine.get_stats(),
            "ingest": service.get_stats(),
            "alerts": dispatcher.get_stats(),
            "broadcast": broadcaster.get_stats(),
            "connections": manager.get_stats(),
        }

    # === TRACK ENDPOINTS ===

    @app.post(
        "/track",
        response_model=TrackResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
        tags=["Track"],
        summary="Принять GPS-фикс",
    )
    async def submit_track(
        submission: TrackSubmission,
        service: TrackIngestService = Depends(get_ingest_service),
    ) -> TrackResponse:
        """
        Принять NMEA-фикс машины.

        Позиция привязывается к трассе; наблюдателям уходит только
        изменившаяся позиция.
        """
        await log_info(f"Получены данные от машины {submission.vehicle_id}", type_msg=TypeMsg.DEBUG)
        update = await service.submit_fix(submission.vehicle_id, submission.nmea)

        if not update.changed:
            return TrackResponse(msg="Car position unchanged", changed=False, record=update.record)
        return TrackResponse(msg="Location updated successfully", changed=True, record=update.record)

    @app.post("/sos", response_model=SosResponse, tags=["Alerts"], summary="SOS от машины")
    async def submit_sos(
        submission: MessageSubmission,
        dispatcher: AlertDispatcher = Depends(get_dispatcher),
    ) -> SosResponse:
        """Разослать SOS и предупредить ближайшую машину позади."""
        result = await dispatcher.submit_alert(submission.vehicle_id, submission.message)
        return SosResponse(
            message="SOS alert sent successfully",
            alert=result.alert,
            warning=result.warning,
        )

    @app.post("/ok", response_model=list[OkResponse], tags=["Alerts"], summary="Статус OK")
    async def submit_ok(
        submission: MessageSubmission,
        dispatcher: AlertDispatcher = Depends(get_dispatcher),
    ) -> list[OkResponse]:
        """Разослать статус OK от машины."""
        status = await dispatcher.submit_status(submission.vehicle_id, submission.message)
        return [OkResponse(ok_message=status, message=f"OK status updated {submission.vehicle_id}")]

    # === READ ENDPOINTS ===

    @app.get("/api/v1/track", response_model=list[TrackPointResponse], tags=["Track"], summary="Точки трассы")
    async def get_track(engine: TrackPositionEngine = Depends(get_engine)) -> list[TrackPointResponse]:
        """Точки трассы в порядке индексов."""
        return [
            TrackPointResponse(index=index, lat=point.latitude, lng=point.longitude)
            for index, point in enumerate(engine.path)
        ]

    @app.get("/api/v1/vehicles", response_model=list[PositionRecord], tags=["Vehicles"], summary="Все машины")
    async def list_vehicles(engine: TrackPositionEngine = Depends(get_engine)) -> list[PositionRecord]:
        """Позиции всех машин в порядке первого появления."""
        return [state.to_record() for state in await engine.list_vehicles()]

    @app.get(
        "/api/v1/vehicles/{vehicle_id}",
        response_model=PositionRecord,
        responses={404: {"description": "Машина не найдена"}},
        tags=["Vehicles"],
        summary="Позиция машины",
    )
    async def get_vehicle(
        vehicle_id: str,
        engine: TrackPositionEngine = Depends(get_engine),
    ) -> PositionRecord:
        """Последняя принятая позиция машины."""
        state = await engine.get_vehicle(vehicle_id)
        if state is None:
            raise HTTPException(status_code=404, detail="Машина не найдена")
        return state.to_record()

    # === WEBSOCKET ===

    @app.websocket("/ws")
    async def observer_socket(websocket: WebSocket) -> None:
        """
        WebSocket для наблюдателей (дашборд, бортовые модули).

        Входящие сообщения:
        - {"action": "ping"}
        """
        manager: ConnectionManager = websocket.app.state.manager
        observer_id = await manager.connect(websocket)

        try:
            while True:
                data = await websocket.receive_json()
                if isinstance(data, dict) and data.get("action") == "ping":
                    manager.send_personal(observer_id, {"event": "pong"})
        except WebSocketDisconnect:
            await manager.disconnect(observer_id)
        except Exception:
            await manager.disconnect(observer_id)

    return app


# === APP ===

app = create_app()


# === STARTUP ===

if __name__ == "__main__":
    import uvicorn
    from track_monitor.config import settings

    uvicorn.run(app, host=settings.server.HOST, port=settings.server.PORT)
