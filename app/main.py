import asyncio
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from app.config import settings
from app.core.realtime import change_feed
from app.modules.auth import routes as auth_routes
from app.modules.users import routes as users_routes
from app.modules.workspaces import routes as workspaces_routes
from app.modules.admin import routes as admin_routes
from app.modules.projects import routes as projects_routes
from app.modules.tasks import routes as tasks_routes
from app.modules.files import routes as files_routes
from app.modules.task_templates import routes as task_templates_routes
from app.modules.notifications import routes as notifications_routes
from app.modules.activity import routes as activity_routes
from app.modules.search import routes as search_routes
from app.modules.analytics import routes as analytics_routes
from app.modules.email import routes as email_routes
from app.modules.email.service import register_email_dispatch
from app.modules.reminders import routes as reminders_routes
from app.modules.reminders.service import reminder_checker
from app.modules.realtime import routes as realtime_routes

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
app.include_router(users_routes.router, prefix="/api/v1")
app.include_router(workspaces_routes.router, prefix="/api/v1")
app.include_router(admin_routes.router, prefix="/api/v1")
app.include_router(projects_routes.router, prefix="/api/v1")
app.include_router(tasks_routes.router, prefix="/api/v1")
app.include_router(files_routes.router, prefix="/api/v1")
app.include_router(task_templates_routes.router, prefix="/api/v1")
app.include_router(notifications_routes.router, prefix="/api/v1")
app.include_router(activity_routes.router, prefix="/api/v1")
app.include_router(search_routes.router, prefix="/api/v1")
app.include_router(analytics_routes.router, prefix="/api/v1")
app.include_router(email_routes.router, prefix="/api/v1")
app.include_router(reminders_routes.router, prefix="/api/v1")
app.include_router(realtime_routes.router, prefix="/api/v1")

_unsubscribe_email_dispatch = None


@app.on_event("startup")
async def startup_event():
    global _unsubscribe_email_dispatch
    logger.info("Application startup")
    change_feed.bind_loop(asyncio.get_running_loop())
    if settings.send_notification_emails:
        _unsubscribe_email_dispatch = register_email_dispatch(change_feed)
    if settings.reminder_checker_enabled:
        reminder_checker.start()


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application shutdown")
    await reminder_checker.stop()
    if _unsubscribe_email_dispatch:
        _unsubscribe_email_dispatch()
    change_feed.bind_loop(None)


@app.get("/")
async def root():
    return {"message": f"Welcome to {settings.app_name}", "status": "healthy"}


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Readiness probe: reports whether background jobs are running."""
    return {"status": "ready", "reminder_checker": reminder_checker.running}
