"""Rankings web API built with Flask."""

import logging
from typing import Optional
from uuid import UUID

from flask import Flask, jsonify, request
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from ..errors import InvalidArgumentError, NotFoundError, RankingError
from ..db.schemas import RpgItemCreate, RpgItemUpdate
from ..ranking.query import to_item_response
from ..reviews.schemas import ReviewCreate, ReviewResponse, ReviewUpdate
from ..services import Services, build_services

logger = logging.getLogger(__name__)


def _int_arg(name: str, default: int) -> int:
    """Read an integer query parameter."""
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise InvalidArgumentError(f"{name} must be an integer, got {raw!r}") from None


def _dump(model) -> dict:
    return model.model_dump(by_alias=True, mode="json")


def create_app(services: Optional[Services] = None) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    services = services or build_services()
    app.extensions["rpgvault"] = services
    trusted = services.config.trusted_review_count

    @app.errorhandler(NotFoundError)
    def handle_not_found(error: NotFoundError):
        return jsonify({"error": str(error)}), 404

    @app.errorhandler(InvalidArgumentError)
    def handle_invalid_argument(error: InvalidArgumentError):
        return jsonify({"error": str(error)}), 400

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError):
        details = error.errors(include_url=False, include_context=False, include_input=False)
        return jsonify({"error": "Invalid request body", "details": details}), 400

    @app.errorhandler(RankingError)
    @app.errorhandler(SQLAlchemyError)
    def handle_service_error(error: Exception):
        logger.exception(f"Request failed: {request.method} {request.path}")
        return jsonify({"error": "Service error. Please try again."}), 500

    @app.route("/rankings/<category_id>")
    @app.route("/api/rankings/<category_id>")
    def get_rankings(category_id: str):
        """One page of a category ranking."""
        page = services.rankings.query(
            category_id,
            subcategory_id=request.args.get("subcategory") or None,
            limit=_int_arg("limit", services.config.default_page_size),
            offset=_int_arg("offset", 0),
        )
        return jsonify(_dump(page.to_response(trusted)))

    @app.route("/api/categories")
    def get_categories():
        """The category taxonomy, for building filters."""
        return jsonify(
            [
                {
                    "id": category.id,
                    "name": category.name,
                    "description": category.description,
                    "subcategories": [
                        {
                            "id": sub.id,
                            "name": sub.name,
                            "description": sub.description,
                            "examples": sub.examples,
                        }
                        for sub in category.subcategories
                    ],
                }
                for category in services.index.categories()
            ]
        )

    @app.route("/api/items", methods=["POST"])
    def create_item():
        """Add a catalogue item."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "JSON body is required"}), 400
        item = services.items.add_item(RpgItemCreate.model_validate(data))
        return jsonify(_dump(to_item_response(item, trusted))), 201

    @app.route("/api/items/<item_id>", methods=["GET"])
    def get_item(item_id: str):
        """A single item with its aggregates."""
        item = services.items.get_item(item_id)
        if not item:
            raise NotFoundError(f"Item not found: {item_id}")
        return jsonify(_dump(to_item_response(item, trusted)))

    @app.route("/api/items/<item_id>", methods=["PUT"])
    def update_item(item_id: str):
        """Edit an item's descriptive attributes."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "JSON body is required"}), 400
        item = services.items.update_item(item_id, RpgItemUpdate.model_validate(data))
        if not item:
            raise NotFoundError(f"Item not found: {item_id}")
        return jsonify(_dump(to_item_response(item, trusted)))

    @app.route("/api/items/<item_id>", methods=["DELETE"])
    def delete_item(item_id: str):
        """Remove an item and its reviews."""
        if not services.items.delete_item(item_id):
            raise NotFoundError(f"Item not found: {item_id}")
        return "", 204

    @app.route("/api/items/<item_id>/reviews", methods=["GET"])
    def list_reviews(item_id: str):
        """Reviews of an item, newest first."""
        if not services.items.get_item(item_id):
            raise NotFoundError(f"Item not found: {item_id}")
        reviews = services.reviews.list_reviews_for_item(item_id)
        return jsonify([_dump(ReviewResponse.model_validate(r)) for r in reviews])

    @app.route("/api/items/<item_id>/reviews", methods=["POST"])
    def create_review(item_id: str):
        """Submit a review; the item's aggregates are recomputed."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "JSON body is required"}), 400
        try:
            UUID(item_id)
        except ValueError:
            raise NotFoundError(f"Item not found: {item_id}") from None

        payload = ReviewCreate.model_validate({**data, "itemId": item_id})
        try:
            review = services.reviews.create_review(payload)
        except ValueError as e:
            return jsonify({"error": str(e)}), 409
        return jsonify(_dump(ReviewResponse.model_validate(review))), 201

    @app.route("/api/reviews/<review_id>", methods=["PUT"])
    def update_review(review_id: str):
        """Edit a review's rating or text."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "JSON body is required"}), 400
        review = services.reviews.update_review(review_id, ReviewUpdate.model_validate(data))
        if not review:
            raise NotFoundError(f"Review not found: {review_id}")
        return jsonify(_dump(ReviewResponse.model_validate(review)))

    @app.route("/api/reviews/<review_id>", methods=["DELETE"])
    def delete_review(review_id: str):
        """Remove a review."""
        if not services.reviews.delete_review(review_id):
            raise NotFoundError(f"Review not found: {review_id}")
        return "", 204

    return app


def run_server(
    host: str = "127.0.0.1",
    port: int = 5000,
    debug: bool = False,
    services: Optional[Services] = None,
) -> None:
    """Run the rankings web server with scheduled rank maintenance."""
    services = services or build_services()
    app = create_app(services)
    services.maintenance.start()
    logger.info(f"Rankings API running at http://{host}:{port}")
    try:
        app.run(host=host, port=port, debug=debug, use_reloader=False)
    finally:
        services.maintenance.stop(timeout=5)
