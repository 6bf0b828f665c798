#!/usr/bin/env python
"""
Run the article API server.
"""
import logging

import uvicorn

from articledesk.article_store_factory import create_article_store
from articledesk.config import Config
from articledesk.server import create_app


def main():
    """Run the article API server."""
    # Load configuration
    config = Config()
    logging.basicConfig(level=config.log_level)

    article_store = create_article_store(config)
    app = create_app(article_store=article_store, config=config)

    print("Starting article server...")
    print(f"Storage backend: {type(article_store).__name__}")
    print(f"Legacy remove route: {'enabled' if config.legacy_remove_route_enabled else 'disabled'}")
    print(f"Listening on http://{config.server_host}:{config.server_port}")

    # Run uvicorn server
    uvicorn.run(
        app,
        host=config.server_host,
        port=config.server_port,
        log_level=config.log_level.lower()
    )


if __name__ == "__main__":
    main()
