import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from prometheus_client import make_asgi_app

from cafe.config import Settings, settings as default_settings
from cafe.middleware.metrics import MetricsMiddleware
from cafe.routers import event, menu, orders, status
from cafe.services.store import CafeStore, build_store
from cafe.sync.connectivity import watch_network_presence
from cafe.tracing import setup_tracing
from cafe.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def create_app(settings: Settings = default_settings, store: CafeStore | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cafe_store = store or build_store(settings)
        app.state.cafe_store = cafe_store
        SQLAlchemyInstrumentor().instrument(engine=cafe_store.local_store.engine)
        await cafe_store.start()

        watcher: asyncio.Task | None = None
        if settings.presence_host:
            watcher = asyncio.create_task(
                watch_network_presence(
                    cafe_store.monitor,
                    settings.presence_host,
                    settings.presence_port,
                    settings.presence_interval,
                )
            )
        logger.info("Startup complete")

        yield

        if watcher is not None:
            watcher.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await watcher
        await cafe_store.close()
        logger.info("Shutting down")

    app = FastAPI(
        title="Cafe Table Ordering",
        description="Offline-first table ordering with remote sync",
        version="1.0.0",
        lifespan=lifespan,
    )

    FastAPIInstrumentor.instrument_app(app)
    app.add_middleware(MetricsMiddleware)
    app.include_router(menu.router, prefix="/menu", tags=["menu"])
    app.include_router(orders.router, prefix="/orders", tags=["orders"])
    app.include_router(event.router, prefix="/event", tags=["event"])
    app.include_router(status.router, prefix="/status", tags=["status"])

    # Expose Prometheus metrics at /metrics
    app.mount("/metrics", make_asgi_app())

    @app.get("/health", tags=["health"])
    async def health():
        return {"status": "ok"}

    return app


setup_logging(default_settings.log_level)
setup_tracing("cafe-table-sync", default_settings.otlp_endpoint)

app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run(app, host=default_settings.api_host, port=default_settings.api_port)
