import uvicorn

from app.core.app_factory import create_app
from app.core.config import settings

app = create_app()


def run() -> None:
    """Serve the app with uvicorn on the configured port."""
    uvicorn.run(app, host="0.0.0.0", port=settings.app.port, log_config=None)


if __name__ == "__main__":
    run()
