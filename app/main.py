import logging
from contextlib import asynccontextmanager

import pytz
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from .config import AppConfig, get_config
from .database import init_db, make_engine
from .errors import OrderServiceError
from .logging_setup import setup_logging
from .replication import ReplicationOutbox, SheetWebhookSink
from .routers import orders

logger = logging.getLogger(__name__)


def create_app(config: AppConfig = None, sink=None, engine: Engine = None) -> FastAPI:
    config = config or get_config()
    setup_logging(config.log_level)

    engine = engine or make_engine(config.database_url)
    if sink is None:
        sink = SheetWebhookSink(config.sheet_webhook_url, timeout=config.webhook_timeout_seconds)
    outbox = ReplicationOutbox(
        sink,
        maxsize=config.replication_queue_size,
        shutdown_grace=config.replication_shutdown_grace_seconds,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_db(engine)
        logger.info("Database connected successfully!")
        if not getattr(sink, "enabled", True):
            logger.warning("SHEET_WEBHOOK_URL is not set; orders will not be replicated")
        outbox.start()
        yield
        await outbox.stop()

    app = FastAPI(title=f"{config.app_name} Backend API", lifespan=lifespan)
    app.state.config = config
    app.state.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    app.state.outbox = outbox
    app.state.timezone = pytz.timezone(config.timezone)

    # CORS open to every origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(OrderServiceError)
    async def order_service_error_handler(request: Request, exc: OrderServiceError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        logger.error(f"Rejected malformed request to {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=400,
            content={"message": "Invalid request body", "error": str(exc.errors())},
        )

    @app.get("/", response_class=PlainTextResponse)
    async def root():
        return f"{config.app_name} Backend API is running!"

    app.include_router(orders.router, prefix="/api")
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    config = get_config()
    logger.info(f"Server listening at http://{config.host}:{config.port}")
    uvicorn.run(app, host=config.host, port=config.port)
