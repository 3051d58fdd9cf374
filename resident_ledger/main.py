import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import auth, dashboard, documents, ledger, notes, properties, reports, residents, tickets
from .config import Base, engine, settings
from .core.errors import register_exception_handlers
from .core.logging import configure_logging
from .core.request_context import RequestIdMiddleware
from .core.security import SecurityHeadersMiddleware, log_security_warnings
from .services.query_cache import query_cache

# Import the models module so every table registers with Base metadata.
from .models import models as _all_models  # noqa: F401

configure_logging(settings.log_level.upper(), json_output=settings.log_json)  # type: ignore[arg-type]
logger = logging.getLogger(__name__)

app = FastAPI(title="Resident Ledger")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestIdMiddleware)

register_exception_handlers(app)


@app.on_event("startup")
def startup() -> None:
    Base.metadata.create_all(bind=engine)
    query_cache.clear()
    log_security_warnings(settings.jwt_secret, settings.cors_origins)
    logger.info("Resident ledger API started")


@app.get("/health", tags=["system"])
def health() -> dict:
    return {"status": "ok"}


app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(properties.router, prefix="/properties", tags=["properties"])
app.include_router(residents.router, prefix="/residents", tags=["residents"])
app.include_router(ledger.router, tags=["ledger"])
app.include_router(tickets.router, tags=["tickets"])
app.include_router(notes.router, tags=["notes"])
app.include_router(documents.router, tags=["documents"])
app.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
app.include_router(reports.router, tags=["reports"])
