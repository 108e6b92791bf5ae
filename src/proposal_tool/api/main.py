import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from proposal_tool import __version__
from proposal_tool.config.settings import configure_logging, get_settings
from proposal_tool.data.import_selections import seed_templates
from proposal_tool.db.database import get_session_factory, init_db
from proposal_tool.api.communities_api import router as communities_router
from proposal_tool.api.pricing_api import router as pricing_router
from proposal_tool.api.proposals_api import router as proposals_router
from proposal_tool.api.special_requests_api import router as special_requests_router
from proposal_tool.api.templates_api import router as templates_router
from proposal_tool.api.upgrades_api import router as upgrades_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings)
    init_db()
    if settings.seed_on_startup:
        session = get_session_factory()()
        try:
            seed_templates(session)
        finally:
            session.close()
    logger.info("Proposal Tool API started")
    yield


app = FastAPI(
    title="Proposal Tool API",
    description="Backend API for home sales proposals, upgrades and purchase orders",
    version=__version__,
    lifespan=lifespan,
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(get_settings().cors_origins),
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(templates_router)
app.include_router(upgrades_router)
app.include_router(proposals_router)
app.include_router(special_requests_router)
app.include_router(communities_router)
app.include_router(pricing_router)


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    """Malformed request bodies are client errors (400)."""
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


@app.exception_handler(Exception)
async def unexpected_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": str(exc) or "Internal server error"})


@app.get("/")
async def root():
    return {"status": "online", "message": "Proposal Tool API Active"}


@app.get("/api/health")
async def health():
    return {"status": "ok", "version": __version__}
