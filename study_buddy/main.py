import logging
import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from study_buddy.middleware.auth import ApiTokenMiddleware
from study_buddy.rate_limit import limiter
from study_buddy.routers.llm import router as llm_router
from study_buddy.routers.mindmap import router as mindmap_router
from study_buddy.routers.pdf import router as pdf_router
from study_buddy.routers.tools import router as tools_router
from study_buddy.services.errors import StudyBuddyError
from study_buddy.services.response_assembler import error_body

logger = logging.getLogger(__name__)

app = FastAPI(title="Study Buddy API", version="0.1.0")

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(StudyBuddyError)
async def study_buddy_error_handler(request: Request, exc: StudyBuddyError) -> JSONResponse:
    logger.info("%s %s -> %s (%d)", request.method, request.url.path, exc.kind.value, exc.status_code)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc))


def _summarize_validation_errors(exc: RequestValidationError) -> str:
    """Join pydantic errors as "body.summary_length: Input should be ...; ..."."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        message = error.get("msg", "Invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("%s %s -> invalid request", request.method, request.url.path)
    return JSONResponse(
        status_code=422,
        content={"error": "Invalid request", "details": _summarize_validation_errors(exc)},
    )


app.add_middleware(ApiTokenMiddleware)

# CORS: load origins from env (comma-separated), default to the Next.js dev server
_cors_env = os.environ.get("CORS_ORIGINS", "http://localhost:3000")
cors_origins = [o.strip() for o in _cors_env.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-LLM-Api-Key", "X-Requested-With"],
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    return response


app.include_router(pdf_router)
app.include_router(mindmap_router)
app.include_router(tools_router)
app.include_router(llm_router)


@app.get("/api/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
