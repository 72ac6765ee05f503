import asyncio
from fastapi import FastAPI, Request
from identity_api.core.config import get_settings
from identity_api.api.api_v1 import user_router, auth_router, role_router
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from identity_api.core.exceptions import AppException, StorageException
import logging
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError
from contextlib import asynccontextmanager, suppress
from identity_api.tasks.cleanup_tokens import cleanup_expired_tokens


settings = get_settings()
logger = logging.getLogger(__name__)


async def periodic_cleanup(interval_seconds: int):
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await cleanup_expired_tokens()
        except Exception:
            # an unreachable database surfaces as OSError, not SQLAlchemyError
            logger.exception("Token cleanup failed, retrying next interval")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up the %s API...", settings.PROJECT_NAME)
    task = asyncio.create_task(periodic_cleanup(settings.TOKEN_CLEANUP_INTERVAL_SECONDS))
    yield
    task.cancel()
    with suppress(asyncio.CancelledError):
        await task
    logger.info("Shutting down the %s API...", settings.PROJECT_NAME)


app = FastAPI(lifespan=lifespan, title=f"{settings.PROJECT_NAME} API", version="1.0.0")

# CORS setup

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
# Rate Limiting setup
limiter = Limiter(key_func=get_remote_address)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Include API routers
app.include_router(user_router, prefix="/api/v1/users", tags=["Users"])
app.include_router(role_router, prefix="/api/v1/roles", tags=["Roles"])
app.include_router(auth_router, prefix="/api/v1/auth", tags=["Authentication"])

# Global exception handlers
@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=exc.headers,
    )

@app.exception_handler(SQLAlchemyError)
async def storage_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Storage failure on %s %s", request.method, request.url.path)
    error = StorageException()
    return JSONResponse(
        status_code=error.status_code,
        content={"detail": error.detail}
    )

# Logger setup
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")



@app.get("/")
def read_root():
    return {"status": "Green", "message": f"The {settings.PROJECT_NAME} API is alive!"}
