"""
Bid Scraper - FastAPI application.

Thin HTTP surface over the scheduler and orchestrator. Scraper runs block on
browser automation, so they are dispatched to a worker thread.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import date
from typing import Optional

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..config import Config, get_config
from ..database.repositories import create_stores
from ..database.repositories.base import CredentialStore
from ..scrapers.exceptions import AlreadyRunningError, StoreUnavailable, ValidationError
from ..scrapers.models import Credential, PortalType
from ..scrapers.orchestrator import Orchestrator
from ..scrapers.scheduler import Scheduler
from ..utils.logging import get_logger

logger = get_logger(__name__)


class CredentialIn(BaseModel):
    """Request body for creating a credential."""
    portal_type: PortalType
    portal_name: str
    url: str = ""
    username: Optional[str] = None
    password: Optional[str] = None
    is_active: bool = True


class CredentialUpdate(BaseModel):
    """Request body for updating a credential; omitted fields are left alone."""
    portal_type: Optional[PortalType] = None
    portal_name: Optional[str] = None
    url: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    is_active: Optional[bool] = None


def credential_not_found() -> JSONResponse:
    return JSONResponse(status_code=404, content={"success": False, "error": "Credential not found"})


def create_app(
    config: Optional[Config] = None,
    orchestrator: Optional[Orchestrator] = None,
    scheduler: Optional[Scheduler] = None,
    start_scheduler: bool = True,
) -> FastAPI:
    """
    Build the application.

    Without an orchestrator the stores are created from configuration; the
    periodic scheduler starts with the application unless disabled.
    """
    config = config or get_config()

    if orchestrator is None:
        bid_store, credential_store = create_stores(config)
        orchestrator = Orchestrator(bid_store, credential_store, config)
    if scheduler is None:
        scheduler = Scheduler(orchestrator, config.scheduler)

    credential_store: CredentialStore = orchestrator.credential_store

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if start_scheduler and config.scheduler.enabled:
            scheduler.start()
        try:
            yield
        finally:
            scheduler.stop()

    app = FastAPI(
        title=config.app.name,
        description="Procurement bid aggregator",
        version=config.app.version,
        lifespan=lifespan,
    )
    app.state.orchestrator = orchestrator
    app.state.scheduler = scheduler

    @app.exception_handler(AlreadyRunningError)
    async def already_running_handler(request: Request, exc: AlreadyRunningError):
        return JSONResponse(
            status_code=409,
            content={"success": False, "error": "Scraper is already running, please wait"},
        )

    @app.exception_handler(StoreUnavailable)
    async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
        logger.error("Store unavailable", path=request.url.path, error=exc.message)
        return JSONResponse(
            status_code=503,
            content={"success": False, "error": "Storage is temporarily unavailable"},
        )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": exc.message, "field": exc.field},
        )

    @app.post("/api/scraper/run")
    async def run_scraper():
        """Run the scraper now."""
        if orchestrator.is_running:
            raise AlreadyRunningError()
        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, scheduler.run_manual)
        return {"success": result.success, "message": result.message, "data": result.to_dict()}

    @app.get("/api/scraper/status")
    async def scraper_status():
        return {"success": True, "data": scheduler.get_status()}

    @app.get("/api/bids/today")
    async def todays_bid_count():
        count = await asyncio.get_running_loop().run_in_executor(
            None, orchestrator.get_todays_bid_count
        )
        return {"success": True, "count": count, "date": date.today().isoformat()}

    # Store-backed handlers are plain functions so FastAPI runs them in its threadpool
    @app.get("/api/bids")
    def list_bids(limit: int = Query(50, ge=1, le=500)):
        """Stored bids, newest posted first."""
        bids = orchestrator.bid_store.list_recent(limit)
        return {"success": True, "count": len(bids), "data": [bid.to_dict() for bid in bids]}

    @app.get("/api/credentials")
    def list_credentials():
        credentials = credential_store.find_all()
        return {
            "success": True,
            "count": len(credentials),
            "data": [credential.to_dict() for credential in credentials],
        }

    @app.post("/api/credentials", status_code=201)
    def create_credential(body: CredentialIn):
        credential = credential_store.save(Credential(**body.model_dump()))
        return {"success": True, "data": credential.to_dict()}

    @app.put("/api/credentials/{credential_id}")
    def update_credential(credential_id: int, body: CredentialUpdate):
        changes = body.model_dump(exclude_unset=True, exclude_none=True)
        credential = credential_store.update(credential_id, **changes)
        if credential is None:
            return credential_not_found()
        return {"success": True, "data": credential.to_dict()}

    @app.delete("/api/credentials/{credential_id}")
    def delete_credential(credential_id: int):
        if not credential_store.delete(credential_id):
            return credential_not_found()
        return {"success": True, "data": {}}

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "service": config.app.name}

    return app
