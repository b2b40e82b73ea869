from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
import logging

from core.auth import resolve_page_redirect, verify_token
from core.config import get_settings
from core.database import init_db
from core.exceptions import register_exception_handlers
from core.logging_config import configure_logging

from modules.feedback.routers.engagement_router import router as engagement_router
from modules.feedback.routers.feedback_router import router as feedback_router
from modules.feedback.routers.profile_router import router as profile_router

logger = logging.getLogger(__name__)

settings = get_settings()
configure_logging()

API_PREFIX = "/api/v1"
UNGATED_PREFIXES = ("/api/", "/docs", "/redoc", "/openapi.json", "/health")

app = FastAPI(
    title="Campus Feedback Portal API",
    description="""
    Feedback submission, moderation and engagement for the campus feedback portal.

    ## Features

    * **Submission** - Students submit categorised, prioritised feedback, optionally anonymous
    * **Moderation** - Admins move items between statuses and respond, with email notification
    * **Public feed** - Published items with likes, dislikes and comments
    * **Analytics** - Status, category, priority and monthly trend breakdowns

    ## Authentication

    Endpoints take a bearer JWT carrying the user id and role.
    """,
    version="1.0.0",
)

# Register exception handlers for consistent error responses
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def page_access_gate(request: Request, call_next):
    """Redirect page requests the visitor's session may not see"""
    path = request.url.path
    if path.startswith(UNGATED_PREFIXES):
        return await call_next(request)

    context = None
    authorization = request.headers.get("Authorization", "")
    if authorization.lower().startswith("bearer "):
        context = verify_token(authorization[7:])

    target = resolve_page_redirect(path, context)
    if target is not None:
        return RedirectResponse(url=target, status_code=307)
    return await call_next(request)


# Engagement routes first: "/feedback/engagement" must not match "/feedback/{feedback_id}"
app.include_router(engagement_router, prefix=API_PREFIX)
app.include_router(feedback_router, prefix=API_PREFIX)
app.include_router(profile_router, prefix=API_PREFIX)


@app.on_event("startup")
async def startup_event():
    """Initialize services on application startup"""
    init_db()
    logger.info(f"Feedback portal started ({settings.environment})")


@app.get("/health", tags=["Health"])
def health_check():
    return {"status": "ok"}
