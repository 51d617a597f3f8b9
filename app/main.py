from contextlib import asynccontextmanager

import logfire
import sentry_sdk
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.config import settings
from app.database.database import Base, async_session, engine, get_db
from app.routes import auth_routes, order_routes, rider_routes
from app.utils import limiter
from app.utils.logger_config import setup_logger


logger = setup_logger()


@asynccontextmanager
async def lifespan(application: FastAPI):
    try:
        logger.info("Initializing application...")

        if settings.AUTO_CREATE_TABLES:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Database tables created")

        async with async_session() as db:
            await db.execute(text("SELECT 1"))
        logger.info("Database connection successful")

        yield

    finally:
        logger.info("Cleaning up resources...")
        await engine.dispose()
        logger.info("Cleanup complete")


if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        send_default_pii=False,
        traces_sample_rate=1.0,
    )


app = FastAPI(
    title=settings.APP_NAME,
    lifespan=lifespan,
    debug=settings.DEBUG,
    summary="Order and rider management for a delivery dispatch console.",
)

app.state.limiter = limiter.limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


if not settings.TESTING:
    logfire.configure(
        service_name=settings.APP_NAME,
        token=settings.LOGFIRE_TOKEN,
        environment=settings.ENVIRONMENT,
        send_to_logfire="if-token-present",
    )
    logfire.instrument_fastapi(app=app)
    logfire.instrument_sqlalchemy(engine=engine)

origins = [settings.CLIENT_URL]


app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.get("/", include_in_schema=False)
def read_root():
    return {"message": f"Welcome to {settings.APP_NAME} API"}


@app.get("/api/db", tags=["Health Status"])
async def check_db_health(db: AsyncSession = Depends(get_db)):
    """Check database connectivity"""
    try:
        await db.execute(text("SELECT 1"))
        return {"status": "healthy", "database": "connected"}
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return {"status": "unhealthy", "database": "disconnected", "error": str(e)}


@app.get("/api/health", tags=["Health Status"])
def api_health_check() -> dict:
    """Check the status of the API"""
    return {"status": "OK", "message": "API up and running"}


app.include_router(auth_routes.router)
app.include_router(order_routes.router)
app.include_router(rider_routes.router)
