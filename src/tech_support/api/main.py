"""Main FastAPI application for the tech support knowledge base."""

import time
from contextlib import asynccontextmanager

import structlog
from fastapi import APIRouter, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tech_support import __version__
from tech_support.api.models import (
    FileListResponse,
    HealthResponse,
    SearchDataItem,
    StoredFileItem,
    UploadResponse,
)
from tech_support.config import Settings, configure_logging, get_settings
from tech_support.extraction import (
    ExtractionError,
    FormatError,
    MissingEntryError,
    UnsupportedFormatError,
    extract_document,
    kind_for_file_name,
)
from tech_support.storage import ExtractionRepository, SeedGenerator, StoredFileNotFoundError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    settings: Settings = app.state.settings

    logger.info("Starting tech support extraction API")
    app.state.repository = ExtractionRepository(
        data_dir=settings.storage.data_dir,
        images_dir=settings.storage.images_dir,
    )
    app.state.seeds = SeedGenerator()
    logger.info(
        "Storage initialized",
        data_dir=str(settings.storage.data_dir),
        images_dir=str(settings.storage.images_dir),
    )

    yield

    logger.info("Shutting down tech support extraction API")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Explicit settings; defaults to the cached environment settings.

    Returns:
        Configured FastAPI app.
    """
    settings = settings or get_settings()
    configure_logging(settings.logging)

    app = FastAPI(
        title="Tech Support Extraction API",
        description="Extracts slide text, worksheet rows and images from Office documents",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.api.debug else None,
        redoc_url="/redoc" if settings.api.debug else None,
    )
    app.state.settings = settings

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time

        logger.info(
            "Request processed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            process_time_ms=round(process_time * 1000, 2),
        )

        response.headers["X-Process-Time"] = str(process_time)
        return response

    app.include_router(router)
    register_exception_handlers(app)
    return app


# ============== API Endpoints ==============


@router.post("/tech-support/upload", response_model=UploadResponse)
async def upload_document(request: Request, file: UploadFile = File(...)) -> UploadResponse:
    """Extract an uploaded .pptx or .xlsx document into the knowledge base."""
    settings: Settings = request.app.state.settings
    repository: ExtractionRepository = request.app.state.repository

    if not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")

    kind = kind_for_file_name(file.filename)

    content = await file.read(settings.api.max_upload_bytes + 1)
    if len(content) > settings.api.max_upload_bytes:
        raise HTTPException(status_code=413, detail="Uploaded file is too large")

    seed = request.app.state.seeds.next_seed()
    logger.info("Upload received", file_name=file.filename, kind=kind.value, size_bytes=len(content))

    result = await run_in_threadpool(
        extract_document,
        content,
        kind,
        repository.images_dir,
        seed,
        file_name=file.filename,
        image_scope=settings.extraction.image_scope,
    )
    stored_name = repository.save(seed, result)

    return UploadResponse(
        success=True,
        file_name=stored_name,
        image_count=result.image_count,
        warning_count=len(result.warnings),
        data=result.to_dict(),
    )


@router.get("/tech-support/files", response_model=FileListResponse)
async def list_files(request: Request) -> FileListResponse:
    """List stored extraction results, newest first."""
    repository: ExtractionRepository = request.app.state.repository
    return FileListResponse(
        files=[
            StoredFileItem(name=f.name, size=f.size, modified=f.modified)
            for f in repository.list_files()
        ]
    )


@router.get("/tech-support/data/{file_name}")
async def get_data(request: Request, file_name: str) -> JSONResponse:
    """Return a stored extraction result."""
    repository: ExtractionRepository = request.app.state.repository
    try:
        return JSONResponse(content=repository.load(file_name))
    except StoredFileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


@router.get("/tech-support/images/{file_name}")
async def get_image(request: Request, file_name: str) -> FileResponse:
    """Return a stored image."""
    repository: ExtractionRepository = request.app.state.repository
    try:
        return FileResponse(repository.image_path(file_name))
    except StoredFileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


@router.get("/tech-support/search-data", response_model=list[SearchDataItem])
async def get_search_data(request: Request) -> list[SearchDataItem]:
    """Return every stored slide, sheet and image as a flat search feed."""
    repository: ExtractionRepository = request.app.state.repository
    items = await run_in_threadpool(repository.search_items)
    return [SearchDataItem(**item.to_dict()) for item in items]


@router.get("/v1/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Check health status of the API and its storage."""
    repository: ExtractionRepository | None = getattr(request.app.state, "repository", None)
    services = {}
    overall_status = "healthy"

    if repository is None:
        services["storage"] = {"status": "not_initialized"}
        overall_status = "degraded"
    else:
        services["storage"] = {
            "status": "healthy",
            "stored_results": len(repository.list_files()),
        }

    return HealthResponse(status=overall_status, version=__version__, services=services)


# Error handlers
def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": message, "status_code": status_code},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Map extraction errors and unexpected failures to JSON error bodies."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(UnsupportedFormatError)
    async def unsupported_format_handler(request: Request, exc: UnsupportedFormatError):
        logger.warning("Unsupported document rejected", kind=str(exc.kind), path=request.url.path)
        return _error_response(415, str(exc))

    @app.exception_handler(FormatError)
    @app.exception_handler(MissingEntryError)
    async def invalid_document_handler(request: Request, exc: ExtractionError):
        logger.warning("Invalid document rejected", error=str(exc), path=request.url.path)
        return _error_response(422, str(exc))

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
        return _error_response(500, "Internal server error")


# Create app instance
app = create_app()


def run() -> None:
    """Run the API with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "tech_support.api.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.debug,
    )


if __name__ == "__main__":
    run()
