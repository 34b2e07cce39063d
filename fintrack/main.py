from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .config import settings
from .database import init_db
from .logging_config import configure_logging
from .routers import analytics as analytics_router
from .routers import auth as auth_router
from .routers import budgets as budgets_router
from .routers import expenses as expenses_router
from .routers import incomes as incomes_router
from .routers import overview as overview_router


def create_app() -> FastAPI:
    configure_logging(settings.log_level)

    app = FastAPI(title="fintrack – Personal Finance Tracker", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    def on_startup():
        init_db()

    @app.get("/health")
    def health():
        return {"status": "ok"}

    app.include_router(auth_router.router)
    app.include_router(expenses_router.router)
    app.include_router(budgets_router.router)
    app.include_router(incomes_router.router)
    app.include_router(overview_router.router)
    app.include_router(analytics_router.router)

    return app


app = create_app()
