import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from app.config import settings
from app.core.middleware import SecurityHeadersMiddleware, RequestContextMiddleware
from app.core.rate_limit import limiter, rate_limit_exceeded_handler
from app.modules.auth import routes as auth_routes
from app.modules.profiles import routes as profiles_routes
from app.modules.organizations import routes as organizations_routes
from app.modules.sites import routes as sites_routes
from app.modules.daily_reports import routes as daily_reports_routes
from app.modules.attendance import routes as attendance_routes
from app.modules.documents import routes as documents_routes
from app.modules.materials import routes as materials_routes
from app.modules.notifications import routes as notifications_routes
from app.modules.markup import routes as markup_routes

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc}")
    if settings.is_production:
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
    return JSONResponse(status_code=500, content={"detail": str(exc)})


app.add_middleware(SlowAPIMiddleware)
app.add_middleware(RequestContextMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include module routes
app.include_router(auth_routes.router, prefix="/api/v1")
app.include_router(profiles_routes.router, prefix="/api/v1")
app.include_router(profiles_routes.signup_router, prefix="/api/v1")
app.include_router(organizations_routes.router, prefix="/api/v1")
app.include_router(sites_routes.router, prefix="/api/v1")
app.include_router(daily_reports_routes.router, prefix="/api/v1")
app.include_router(attendance_routes.router, prefix="/api/v1")
app.include_router(documents_routes.router, prefix="/api/v1")
app.include_router(materials_routes.router, prefix="/api/v1")
app.include_router(notifications_routes.router, prefix="/api/v1")
app.include_router(markup_routes.router, prefix="/api/v1")


@app.on_event("startup")
async def startup_event():
    logger.info(f"Application startup ({settings.environment}, site timezone {settings.timezone})")
    if not settings.supabase_service_role_key:
        logger.warning("SUPABASE_SERVICE_ROLE_KEY is not set; user creation and password resets are disabled")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application shutdown")


@app.get("/")
@limiter.exempt
async def root():
    return {"message": f"Welcome to {settings.app_name}", "status": "healthy"}


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Readiness probe: Supabase settings must be present."""
    if not settings.supabase_url or not settings.supabase_key:
        return JSONResponse(status_code=503, content={"status": "not ready", "reason": "Supabase is not configured"})
    return {"status": "ready"}
