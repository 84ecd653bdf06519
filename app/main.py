import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from app.config.settings import settings
from app.core import session_registry
from app.database.supabase_client import get_supabase
from app.modules.auth.service import AuthService
from app.modules.profiles.service import ProfileService
from app.modules.auth import routes as auth_routes
from app.modules.profiles import routes as profiles_routes
from app.modules.access import routes as access_routes

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    if settings.is_production:
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
    return JSONResponse(status_code=500, content={"detail": str(exc)})


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"X-XSS-Protection", b"1; mode=block"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


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
app.include_router(access_routes.router, prefix="/api/v1")


def subscribe_auth_events(supabase):
    """Route Supabase auth events into the profile session registry; returns the subscription."""
    auth_service = AuthService(supabase)
    profile_service = ProfileService(supabase)
    subscription = auth_service.on_auth_state_change(
        lambda event, session: session_registry.handle_auth_event(event, session, profile_service)
    )

    # Restore a session persisted by the client before the restart, if any
    existing = auth_service.get_session()
    if existing is not None:
        session_registry.handle_auth_event("INITIAL_SESSION", existing, profile_service)
    return subscription


@app.on_event("startup")
async def startup_event():
    logger.info("Application startup")
    if not settings.supabase_url:
        logger.warning("SUPABASE_URL not set; auth state events will not be tracked")
        return
    app.state.auth_subscription = subscribe_auth_events(get_supabase())
    logger.info("Subscribed to auth state changes")


@app.on_event("shutdown")
async def shutdown_event():
    subscription = getattr(app.state, "auth_subscription", None)
    if subscription is not None:
        subscription.unsubscribe()
    session_registry.clear()
    logger.info("Application shutdown")


@app.get("/")
async def root():
    return {"message": "Welcome to dashboard-access", "status": "healthy"}


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Readiness probe: extend here with DB checks if needed."""
    return {"status": "ready"}
