import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .errors import InvalidInput, TodoAIError
from .routers import ai as ai_router
from .routers import todos as todos_router
from .settings import get_settings

_settings = get_settings()

logging.basicConfig(
    level=getattr(logging, _settings.log_level, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "todos",
        "description": "Owner-scoped CRUD for todos with filtering, sorting, pagination and statistics.",
    },
    {
        "name": "ai",
        "description": "Natural-language todo extraction and AI summaries of todo collections.",
    },
]

app = FastAPI(
    title="Todo AI Backend",
    description=(
        "Personal task management API: todo CRUD plus LLM-backed extraction of todos from "
        "natural language and narrative summaries of todo collections."
    ),
    version="0.1.0",
    openapi_tags=openapi_tags,
)

# An empty CORS_ALLOW_ORIGINS list means every origin.
_origins = _settings.cors_allow_origins or ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TodoAIError)
async def todo_ai_exception_handler(request: Request, exc: TodoAIError) -> JSONResponse:
    """
    Render taxonomy errors as {"error": message} plus "details" when present.
    """
    if isinstance(exc, InvalidInput):
        logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Malformed bodies, bad query values and schema violations on the CRUD routes all
    answer 422 with {"error": "ValidationError", "message": ..., "detail": [errors]}.
    """
    return JSONResponse(
        status_code=422,
        content={
            "error": "ValidationError",
            "message": "Request validation failed",
            "detail": jsonable_encoder(exc.errors()),
        },
    )


# PUBLIC_INTERFACE
@app.get("/", summary="Health Check", tags=["health"])
def health_check():
    """
    Health check endpoint.

    Returns:
        A JSON object indicating service health, the storage backend and whether the
        generation credential is configured.
    """
    settings = get_settings()
    return {
        "message": "Healthy",
        "backend": settings.persistence_backend,
        "ai_configured": settings.google_api_key is not None,
    }


app.include_router(todos_router.router)
app.include_router(ai_router.router)
