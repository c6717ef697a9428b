"""
Main FastAPI Application
FastAPI app creation, CORS configuration, middleware, and startup events
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
import logging

from .dependencies import initialize_services, get_config, get_upload_store
from .routes import api_router
from .utils import error_response, describe_validation_errors

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="QA ToolHub Proxy",
    description="Proxy between the QA ToolHub browser app and Jira/Confluence Cloud: ticket creation, "
                "Epic search, project metadata, releases, checklist pages, translation and uploads.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

config = get_config()

# CORS configuration - use permissive mode in development
if not config.is_production():
    logger.info("CORS: Running in development mode - allowing all origins")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,  # Must be False when using allow_origins=["*"]
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )
else:
    cors_origins = config.get_cors_origins()
    logger.info(f"CORS: Running in production mode - allowing {len(cors_origins)} origins")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    """Log every incoming request"""
    logger.info(f"{request.method} {request.url.path}")
    response = await call_next(request)
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report invalid bodies as 400 with the shared error shape"""
    message = describe_validation_errors(exc.errors())
    logger.warning(f"Rejected {request.method} {request.url.path}: {message}")
    return error_response(400, message)


# Include all routers
app.include_router(api_router)

# Uploaded files are served back under /uploads/<stored name>
app.mount(
    "/uploads",
    StaticFiles(directory=get_upload_store().directory, check_dir=False),
    name="uploads"
)


# Startup event
@app.on_event("startup")
async def startup_event():
    """Load configuration, prepare uploads and cache Confluence spaces"""
    initialize_services()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.get_port(), log_level="info")
