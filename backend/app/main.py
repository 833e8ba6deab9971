import logging

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from .api import admin as admin_api
from .api import application as application_api
from .api import auth as auth_api
from .api import users as users_api
from .config import FRONTEND_ORIGINS, LOG_LEVEL
from .database import engine, init_db
from .utils.error_handlers import get_error_message, register_error_handlers

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="TeachTeam Tutor Recruitment")

app.include_router(auth_api.router)
app.include_router(users_api.router)
app.include_router(application_api.router)
app.include_router(admin_api.router)

register_error_handlers(app)


@app.get("/")
def root():
    return {"message": "TeachTeam backend is live!"}


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {
        "status": "Backend running",
        "service": "TeachTeam Tutor Recruitment"
    }


# React dev servers (main site on 3000, admin panel on 3002).
_default_origins = ["http://localhost:3000", "http://localhost:3002"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=[*_default_origins, *FRONTEND_ORIGINS],
    allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup() -> None:
    try:
        init_db()
        app.state.db_init_error = None
        logger.info("Database initialised (%s)", engine.dialect.name)
    except Exception as e:
        logger.exception("Database initialisation failed")
        app.state.db_init_error = str(e)


@app.get("/db/health")
def db_health():
    if getattr(app.state, "db_init_error", None):
        logger.warning("DB health check: init failed earlier: %s", app.state.db_init_error)
        raise HTTPException(status_code=503, detail=get_error_message("database_error"))

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning("DB health check failed: %s", e)
        raise HTTPException(status_code=503, detail=get_error_message("database_error"))

    return {"status": "ok"}
