"""
Codes Site - Article API Server
Flask application exposing the article layout pipeline over JSON.
"""

import logging
from typing import Optional

from flask import Flask

from codes_site.core.managers.config_manager import config_manager
from codes_site.server.routers.article_api_router import article_api_router
from site_guard.rate_limiter import MAX_BUCKET_COUNT, RateLimiter

logger = logging.getLogger(__name__)


def create_app(rate_limiter: Optional[RateLimiter] = None) -> Flask:
    """
    Application factory. A fresh RateLimiter is created per app unless one is injected.
    """
    flask_app = Flask(__name__)

    if rate_limiter is None:
        rate_limiter = RateLimiter(
            max_buckets=config_manager.get_nested("rate_limit.max_buckets", MAX_BUCKET_COUNT)
        )
    flask_app.config['RATE_LIMITER'] = rate_limiter

    flask_app.register_blueprint(article_api_router, url_prefix='/api')
    logger.debug("Article API app created.")
    return flask_app


def run_server(host: str, port: int, debug: bool = False) -> None:
    app = create_app()

    print("\n" + "=" * 50)
    print("🚀  CODES SITE | Article API")
    print(f"🌐  Listening on: http://{host}:{port}/api")
    print("=" * 50 + "\n")

    app.run(host=host, port=port, debug=debug, use_reloader=False)
