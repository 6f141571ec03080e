import logging
import os
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

from daybook.routes import (
    auth_router,
    plans_router,
    history_router,
)
from daybook.database import init_db, DATABASE_URL
from daybook.errors import (
    ExtractionError,
    NotAuthenticatedError,
    PlanLoadError,
    PlanSaveError,
)

# Create FastAPI app
app = FastAPI(
    title="Daybook",
    description="Personal daily planner",
    version="1.0.0"
)

# Include routers
app.include_router(auth_router)
app.include_router(plans_router)
app.include_router(history_router)


@app.on_event("startup")
def on_startup():
    """Ensure the database is reachable and tables exist. Fails loudly otherwise."""
    try:
        init_db()
    except Exception as e:
        # Re-raise as RuntimeError so the server fails loudly
        raise RuntimeError(
            f"Database initialization failed for DATABASE_URL={DATABASE_URL}: {e}"
        ) from e


@app.get("/health")
async def health():
    return {"status": "ok"}


# Error handlers
@app.exception_handler(NotAuthenticatedError)
async def not_authenticated_handler(request: Request, exc: NotAuthenticatedError):
    """Handle operations attempted without a session."""
    return JSONResponse({"detail": str(exc)}, status_code=401)


@app.exception_handler(PlanLoadError)
@app.exception_handler(PlanSaveError)
async def plan_store_handler(request: Request, exc):
    """Handle store failures while loading or saving a plan."""
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse({"detail": str(exc)}, status_code=503)


@app.exception_handler(ExtractionError)
async def extraction_handler(request: Request, exc: ExtractionError):
    """Handle an unreachable or misconfigured image extraction service."""
    return JSONResponse({"success": False, "error": str(exc)}, status_code=502)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("daybook.main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")), reload=True)
