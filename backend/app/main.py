import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.errors import register_exception_handlers
from app.api.health import router as health_router
from app.api.routes_cart import router as cart_router
from app.api.routes_catalogue import router as catalogue_router
from app.config import settings
from app.db import init_db
from app.security.context import StaticContextResolver


def configure_logging(level: str = settings.LOG_LEVEL):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    configure_logging()
    init_db()
    logging.getLogger("api").info("LoveCakes API started (env=%s)", settings.APP_ENV)
    yield


app = FastAPI(title="LoveCakes - Backend", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# placeholder tenant/user until authentication exists
app.state.context_resolver = StaticContextResolver()

register_exception_handlers(app)

app.include_router(health_router, prefix="/api", tags=["health"])

app.include_router(catalogue_router, prefix=settings.API_PREFIX)

app.include_router(cart_router, prefix=settings.API_PREFIX)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host=settings.APP_HOST, port=settings.APP_PORT)
