import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from apps.api.middleware.request_context import RequestContextMiddleware
from apps.api.settings import ApiSettings, get_api_settings
from modules.snapshot.adapters.http.notifications import NotificationBroker
from modules.snapshot.adapters.http.router import router as rpc_router
from modules.snapshot.adapters.rpc.dispatcher import JsonRpcDispatcher
from modules.snapshot.application.ports import SnapshotProvider
from modules.snapshot.application.service import SnapshotService
from modules.snapshot.application.settings import SnapshotProviderSettings
from modules.snapshot.infrastructure.persistence import SqlSnapshotStore

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s %(message)s")
logger = logging.getLogger(__name__)


def create_app(
    store: SqlSnapshotStore | None = None,
    provider: SnapshotProvider | None = None,
    provider_settings: SnapshotProviderSettings | None = None,
    settings: ApiSettings | None = None,
) -> FastAPI:
    api_settings = settings or get_api_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = store is None
        active_store = store or SqlSnapshotStore.from_url()
        broker = NotificationBroker()
        service = SnapshotService(
            active_store,
            provider_settings=provider_settings,
            provider=provider,
            on_event=broker.publish,
        )
        app.state.store = active_store
        app.state.broker = broker
        app.state.service = service
        app.state.dispatcher = JsonRpcDispatcher(service)
        app.state.sse_keepalive_seconds = api_settings.sse_keepalive_seconds
        logger.info("sightline api ready")
        try:
            yield
        finally:
            if owned:
                active_store.close()
            logger.info("sightline api shutting down")

    app = FastAPI(title="Sightline", lifespan=lifespan)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=api_settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    app.include_router(rpc_router)
    return app


app = create_app()
