import logging
from typing import Any, Dict, Optional, Tuple

from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError

from article_layout.controllers.render_controller import ArticleRenderController
from article_layout.model import AdPlacementOptions
from article_layout.services.ad_placement_service import AdPlacementService
from article_layout.services.gallery_service import GalleryService
from codes_site.core.managers.config_manager import config_manager
from site_guard.request_utils import get_request_ip, is_trusted_mutation_origin

logger = logging.getLogger(__name__)

article_api_router = Blueprint('article_api_router', __name__)

DEFAULT_RATE_LIMIT = 30
DEFAULT_RATE_WINDOW_SECONDS = 60


class RequestRejected(Exception):
    """Raised by the request guards; carries the HTTP status and payload to answer with."""

    def __init__(self, status: int, message: str, headers: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.status = status
        self.message = message
        self.headers = headers or {}


# --- HELPER FUNCTIONS ---

def _guard_mutation() -> None:
    """Same-origin check followed by the per-IP rate limit."""
    if config_manager.get_nested("server.require_same_origin", True) and not is_trusted_mutation_origin(request):
        raise RequestRejected(403, "Untrusted request origin")

    limiter = current_app.config.get('RATE_LIMITER')
    if limiter is None:
        return

    result = limiter.check(
        key=f"{request.endpoint}:{get_request_ip(request)}",
        limit=config_manager.get_nested("rate_limit.limit", DEFAULT_RATE_LIMIT),
        window_seconds=config_manager.get_nested("rate_limit.window_seconds", DEFAULT_RATE_WINDOW_SECONDS),
    )
    if not result.allowed:
        raise RequestRejected(
            429, "Too many requests",
            headers={"Retry-After": str(result.retry_after_seconds)}
        )


def _read_payload() -> Tuple[str, Dict[str, Any]]:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise RequestRejected(400, "Request body must be a JSON object")

    body = payload.get("html")
    if not isinstance(body, str):
        raise RequestRejected(400, "Missing required field 'html'")

    options = payload.get("options") or {}
    if not isinstance(options, dict):
        raise RequestRejected(400, "'options' must be an object")
    return body, options


def _resolve_options(overrides: Dict[str, Any]) -> AdPlacementOptions:
    try:
        return AdPlacementOptions.from_config(config_manager.get_section("ad_placement"), overrides)
    except ValidationError as e:
        raise RequestRejected(400, f"Invalid options: {e}") from e


def _rejection_response(e: RequestRejected):
    response = jsonify({"error": e.message})
    for name, value in e.headers.items():
        response.headers[name] = value
    return response, e.status


# --- API ROUTES ---

@article_api_router.route('/health', methods=['GET'])
def health():
    return jsonify({"status": "ok"})


@article_api_router.route('/article/blocks', methods=['POST'])
def article_blocks():
    """Returns the content/ad block sequence for an article body."""
    try:
        _guard_mutation()
        body, overrides = _read_payload()
        service = AdPlacementService(_resolve_options(overrides))
        blocks = service.insert_ads(body)
        return jsonify({"blocks": [block.model_dump() for block in blocks]})
    except RequestRejected as e:
        return _rejection_response(e)
    except Exception as e:
        logger.error(f"Error building article blocks: {e}", exc_info=True)
        return jsonify({"error": str(e)}), 500


@article_api_router.route('/article/galleries', methods=['POST'])
def article_galleries():
    try:
        _guard_mutation()
        body, _ = _read_payload()
        return jsonify({"html": GalleryService().group_galleries(body)})
    except RequestRejected as e:
        return _rejection_response(e)
    except Exception as e:
        logger.error(f"Error grouping galleries: {e}", exc_info=True)
        return jsonify({"error": str(e)}), 500


@article_api_router.route('/article/render', methods=['POST'])
def article_render():
    """Runs the full pipeline (galleries, ad placement, ad slot markup) on an article body."""
    try:
        _guard_mutation()
        body, overrides = _read_payload()
        controller = ArticleRenderController(options=_resolve_options(overrides))
        return jsonify({"html": controller.render(body)})
    except RequestRejected as e:
        return _rejection_response(e)
    except Exception as e:
        logger.error(f"Error rendering article: {e}", exc_info=True)
        return jsonify({"error": str(e)}), 500
