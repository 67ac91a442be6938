from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from repokit.config import settings
from repokit.database.manager import DatabaseManager
from repokit.middleware.logging_md import LoggingMiddleware
from repokit.logging.logger import LogConfig, get_logger
from repokit.exceptions.handler import BusinessException, global_exception_handler
from apps.library.api.router import router as library_router

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    manager = DatabaseManager.get_instance()
    if settings.DB_AUTO_CREATE:
        # Register every table model before create_all()
        import apps.models  # noqa: F401
        await manager.sql.create_all()
    logger.info(f"{settings.APP_NAME} started ({settings.APP_ENV})")
    yield
    await DatabaseManager.reset()


app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Initialize logging configuration
LogConfig.setup_logging()

# Register global exception handlers
app.add_exception_handler(BusinessException, global_exception_handler)
app.add_exception_handler(RequestValidationError, global_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

app.add_middleware(LoggingMiddleware)

# Mount routers (prefix from config for easy override in private projects)
app.include_router(
    library_router,
    prefix=settings.API_V1_LIBRARY_PREFIX,
    tags=["Library"]
)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
