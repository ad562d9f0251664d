"""Application bootstrapper for the dairy storefront API."""
from __future__ import annotations

import logging

from .config import DEFAULT_CONFIG
from .web.app import bootstrap_app

logger = logging.getLogger(__name__)


def run() -> None:
    """Entrypoint used by the CLI to launch the web API."""

    logging.basicConfig(level=logging.INFO)
    config = DEFAULT_CONFIG
    app, _ = bootstrap_app(config)
    logger.info("Starting storefront API in %s mode", config.environment)
    app.run(debug=config.environment == "development")


if __name__ == "__main__":  # pragma: no cover - manual execution only
    run()
