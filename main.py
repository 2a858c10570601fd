from fastapi import FastAPI
from typing import Optional
import logging

from csrf import CSRFMiddleware
from database import Base, make_engine, make_session_factory
from errors import register_exception_handlers
from routers import cashcards
from security import AccessGate, AccessGateMiddleware, AccessRule, UserDirectory
from settings import CASHCARDS_PATH, Settings, get_settings
from store import CashCardStore, InMemoryCashCardStore, SqlCashCardStore

logger = logging.getLogger(__name__)


def build_store(settings: Settings) -> CashCardStore:
    if settings.store_backend == "memory":
        return InMemoryCashCardStore()
    engine = make_engine(settings.database_url, settings.database_echo)
    Base.metadata.create_all(engine)
    return SqlCashCardStore(make_session_factory(engine))


def create_app(
    store: Optional[CashCardStore] = None,
    directory: Optional[UserDirectory] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Wire store, access gate and routes into an application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="Cash Card API",
        version="1.0.0",
        description="Create and read cash cards behind HTTP Basic role checks",
    )
    app.state.store = store if store is not None else build_store(settings)

    gate = AccessGate(
        directory if directory is not None else UserDirectory.from_seeds(settings.users.values()),
        [AccessRule(CASHCARDS_PATH, settings.card_owner_role)],
    )

    # Starlette runs the last added middleware first: the gate sees requests before CSRF.
    if settings.csrf_protection_enabled:
        app.add_middleware(CSRFMiddleware)
    else:
        logger.info("CSRF protection disabled: stateless non-browser API")
    app.add_middleware(AccessGateMiddleware, gate=gate)

    register_exception_handlers(app)
    app.include_router(cashcards.router)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


def run() -> None:
    import uvicorn

    settings = get_settings()
    logging.basicConfig(level=settings.log_level)
    uvicorn.run(create_app(settings=settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
