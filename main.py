import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from podio.core.config import Settings, get_settings
from podio.core.logging import setup_logging
from podio.db.store import DocumentStore, StoreError
from podio.db.sql_store import SqlStore
from podio.services.aggregation import ScoreAggregationJob
from podio.services.leaderboard import LeaderboardBuilder

# Importar las rutas (los routers)
from podio.api.auth import router as auth_router
from podio.api.predictions import router as predictions_router
from podio.api.race_results import router as race_results_router
from podio.api.standings import router as standings_router

logger = logging.getLogger("podio.main")


def create_app(settings: Settings | None = None, store: DocumentStore | None = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    # El almacén se crea aquí y se cierra al apagar; nada de conexiones globales
    if store is None:
        store = SqlStore(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Creamos las tablas en la base de datos
        if isinstance(store, SqlStore):
            store.create_tables()
        logger.info("%s arrancado", settings.app_name)
        yield
        store.close()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.store = store
    app.state.scoring_job = ScoreAggregationJob(store, positions=settings.tracked_positions)
    app.state.leaderboard = LeaderboardBuilder(store)

    # Conectamos las piezas (routers)
    app.include_router(auth_router)
    app.include_router(predictions_router)
    app.include_router(race_results_router)
    app.include_router(standings_router)

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        logger.error("Error de almacén en %s: %s", request.url.path, exc)
        return JSONResponse(status_code=503, content={"detail": "Almacén no disponible"})

    # Configuramos el permiso para que React pueda hablar con Python
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    def read_root():
        return {"message": "API Podio funcionando 🏎️"}

    return app


app = create_app()
