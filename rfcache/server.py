# rfcache/server.py
"""
Read-only FastAPI server over an emitter cache. The database must already
exist at the current schema version (see `rfcache migrate`).
"""

from fastapi import FastAPI, Request
from starlette.responses import JSONResponse

from rfcache.utils.log import get_logger
from rfcache.storage.config import StoreConfig
from rfcache.storage.dao import EmitterStore
from rfcache.storage.errors import EmitterStoreError
from rfcache.utils.validate import EmitterInfo, EmitterQuery, EmitterType, RfIdentification

logger = get_logger(__name__)


def create_app(db_path: str) -> FastAPI:
    """
    Build a FastAPI instance bound to one emitter database.
    """
    app = FastAPI()
    app.state.db_path = db_path

    def open_store(request: Request) -> EmitterStore:
        return EmitterStore(StoreConfig.inspect(request.app.state.db_path))

    @app.exception_handler(EmitterStoreError)
    async def cache_unavailable(request: Request, exc: EmitterStoreError) -> JSONResponse:
        logger.error("Emitter cache unavailable: %s", exc)
        return JSONResponse(status_code=503, content={"detail": "emitter cache unavailable"})

    @app.get("/api/status", response_class=JSONResponse)
    async def status() -> JSONResponse:
        return JSONResponse(status_code=200, content={"status": "ok"})

    @app.get("/api/schema", response_class=JSONResponse)
    async def get_schema(request: Request) -> JSONResponse:
        """
        return the schema version and number of stored emitters.
        """
        with open_store(request) as store:
            content = {"version": store.schema_version, "emitters": store.count()}
        return JSONResponse(status_code=200, content=content)

    @app.get("/api/emitter/{rf_type}/{rf_id}", response_model=EmitterInfo)
    async def get_emitter(request: Request, rf_type: EmitterType, rf_id: str):
        ident = RfIdentification(rf_type=rf_type, rf_id=rf_id)
        with open_store(request) as store:
            info = store.get_emitter(ident)
        if info is None:
            return JSONResponse(status_code=404, content={"detail": f"{ident} not found"})
        return info

    @app.post("/api/emitters", response_model=list[RfIdentification])
    async def get_emitters(request: Request, query: EmitterQuery):
        with open_store(request) as store:
            found = store.get_emitters(query.rf_type, query.bbox)
        return sorted(found)

    return app
