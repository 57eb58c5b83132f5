import uvicorn

from sales_api.core.app_factory import create_app
from sales_api.core.config import settings

app = create_app()


def run() -> None:
    """Serve the API with uvicorn on the configured host/port."""
    uvicorn.run(
        "sales_api.main:app",
        host=settings.api.host,
        port=settings.api.port,
        log_config=None,
    )


if __name__ == "__main__":
    run()
