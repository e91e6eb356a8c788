import structlog
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import configure_logging, settings
from .exceptions import StudyError
from .routers import auth, dashboard, flashcard_sets, progress

load_dotenv()
configure_logging(settings.environment, settings.log_level)

logger = structlog.get_logger(__name__)

app = FastAPI(title="Flashcard Study API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # dev only
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StudyError)
async def study_error_handler(request: Request, exc: StudyError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("request_failed", method=request.method, path=request.url.path, detail=exc.message)
    else:
        logger.warning(
            "request_rejected",
            status_code=exc.status_code,
            method=request.method,
            path=request.url.path,
            detail=exc.message,
        )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


app.include_router(auth.router)
app.include_router(flashcard_sets.router)
app.include_router(progress.router)
app.include_router(dashboard.router)
