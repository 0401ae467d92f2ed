"""Entry point for serving the Helpdesk API with Uvicorn.

Host and port are read from the ``HOST`` and ``PORT`` environment
variables (defaults ``0.0.0.0`` and ``8000``).  Other configuration,
such as ``DATABASE_URL`` and ``SECRET_KEY``, is read by
``helpdesk_api.app.core.config``.

Usage:
    python run.py
"""
import os

from uvicorn import Config, Server

from helpdesk_api.app.core.config import settings


def main() -> None:
    """Serve the API until interrupted."""
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    config = Config(
        app="helpdesk_api.app.main:app",
        host=host,
        port=port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
    server = Server(config)
    try:
        server.run()
    except (KeyboardInterrupt, SystemExit):
        pass


if __name__ == "__main__":
    main()
