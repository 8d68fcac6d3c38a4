"""Server entrypoint: `python -m querychat.api.main`.

Configures logging, then runs the HTTP app under uvicorn on the configured
port. A startup failure (for example MongoDB unreachable) makes uvicorn exit
with a non-zero status.
"""

import logging

import uvicorn

from querychat.api.http_api import create_app
from querychat.core.settings import get_settings


def main():
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="[%(asctime)s] %(levelname)s %(name)s - %(message)s",
    )
    logging.getLogger(__name__).info("Server running on http://localhost:%d", settings.port)
    uvicorn.run(create_app(), host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
