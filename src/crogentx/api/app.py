"""
ASGI entrypoint.

Run with: uvicorn crogentx.api.app:app --host 0.0.0.0 --port 3000
or the ``crogentx-api`` console script.
"""

from crogentx.api.server import app
from crogentx.config import settings

__all__ = ["app", "run"]


def run() -> None:
    import uvicorn

    uvicorn.run(
        app,
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
