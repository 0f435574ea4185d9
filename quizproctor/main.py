import uvicorn
from fastapi import FastAPI

from quizproctor.api.routes.code_challenges import router as code_challenges_router
from quizproctor.api.routes.daily_challenges import router as daily_challenges_router
from quizproctor.api.routes.health import router as health_router
from quizproctor.api.routes.quizzes import router as quizzes_router
from quizproctor.core.config import get_settings
from quizproctor.core.logging import configure_logging


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level, app_env=settings.app_env)

    app = FastAPI(
        title="Quiz Proctor API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.include_router(health_router)
    app.include_router(quizzes_router)
    app.include_router(daily_challenges_router)
    app.include_router(code_challenges_router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "quizproctor.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_env == "dev",
    )


if __name__ == "__main__":
    run()
