import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI

from credential_rotator import KeyManager, RotatingClient, RotatorConfig
from credential_rotator.failure_logger import configure_failure_logger
from rotator_service.routers import completions_router, keys_router
from rotator_service.settings import (
    ServiceSettings,
    get_service_settings,
    validate_proxy_settings,
)

# Configure logging
logging.basicConfig(level=logging.INFO)

# Load environment variables from .env file
load_dotenv()


def create_app(
    key_manager: KeyManager | None = None,
    settings: ServiceSettings | None = None,
) -> FastAPI:
    """
    Builds the app. The key manager is created once per app in the lifespan
    and shared by every request through app.state.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.settings = settings or get_service_settings()
        validate_proxy_settings(app.state.settings)

        if app.state.settings.failure_log_dir:
            configure_failure_logger(app.state.settings.failure_log_dir)

        config = RotatorConfig.from_env()
        app.state.key_manager = key_manager or KeyManager.from_config(config)
        app.state.rotating_client = RotatingClient(
            app.state.key_manager,
            max_attempts=config.max_attempts,
            default_model=app.state.settings.default_model,
        )
        logging.info("Key manager initialized.")
        yield
        logging.info("Key manager shut down.")

    app = FastAPI(lifespan=lifespan)
    app.include_router(keys_router)
    app.include_router(completions_router)

    @app.get("/")
    def read_root():
        return {"Status": "API Key Rotator is running"}

    return app


app = create_app()


if __name__ == "__main__":
    import argparse

    import uvicorn

    parser = argparse.ArgumentParser(description="API Key Rotator - OpenAI-compatible proxy")
    parser.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind the server to.")
    parser.add_argument("--port", type=int, default=8000, help="Port to run the server on.")
    args = parser.parse_args()

    uvicorn.run(app, host=args.host, port=args.port)
