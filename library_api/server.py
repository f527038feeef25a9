from __future__ import annotations

import uvicorn

from library_api.core.config import settings
from library_api.core.logging_config import parse_level


def main() -> None:
    """Serve the API with uvicorn on ``0.0.0.0:$PORT``."""
    uvicorn.run(
        "library_api.main:app",
        host="0.0.0.0",
        port=settings.port,
        timeout_keep_alive=settings.server_idle_timeout_secs,
        log_level=parse_level(settings.log_level).lower(),
        # Leave uvicorn's loggers alone so they propagate to loguru.
        log_config=None,
        # Requests are logged by RequestIdMiddleware.
        access_log=False,
    )


if __name__ == "__main__":
    main()
