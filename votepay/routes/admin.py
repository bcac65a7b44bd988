from flask import jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from votepay.errors import CategoryNotFound, PositionNotFound, ValidationFailed
from votepay.extensions import db
from votepay.models import Candidate, Category, Position
from votepay.schemas import (
    NewCandidateRequest,
    NewCategoryRequest,
    NewPositionRequest,
    load_request,
)


def _category_json(category):
    return {"id": category.id, "name": category.name}


def _position_json(position):
    return {"id": position.id, "name": position.name, "category_id": position.category_id}


def _candidate_json(candidate):
    return {
        "id": candidate.id,
        "name": candidate.name,
        "position_id": candidate.position_id,
    }


def _id_arg(name):
    raw = (request.args.get(name) or "").strip()
    if not raw:
        return None
    if not (raw.isascii() and raw.isdigit()):
        raise ValidationFailed(f"Invalid {name}")
    return int(raw)


def register_admin_routes(app):
    @app.route("/createcategories", methods=["POST"])
    def create_category():
        req = load_request(NewCategoryRequest, request.get_json(silent=True))

        category = Category(name=req.name)
        try:
            db.session.add(category)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            return jsonify({"error": "Failed to create category"}), 500

        return jsonify(
            {
                "message": "Category created successfully",
                "category": _category_json(category),
            }
        ), 201

    @app.route("/categories/<category_id>", methods=["DELETE"])
    def delete_category(category_id):
        if not (category_id.isascii() and category_id.isdigit()):
            return jsonify({"error": "Invalid category ID"}), 400

        try:
            deleted = Category.query.filter_by(id=int(category_id)).delete(
                synchronize_session=False
            )
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            return jsonify({"error": "Failed to delete category"}), 500

        if deleted == 0:
            return jsonify({"error": "Category not found"}), 404

        return jsonify({"message": "Category deleted successfully"}), 200

    @app.route("/createpositions", methods=["POST"])
    def create_position():
        req = load_request(NewPositionRequest, request.get_json(silent=True))

        if db.session.get(Category, req.category_id) is None:
            raise CategoryNotFound(req.category_id)

        position = Position(name=req.name, category_id=req.category_id)
        try:
            db.session.add(position)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            return jsonify({"error": "Failed to create position"}), 500

        return jsonify(
            {
                "message": "Position created successfully",
                "position": _position_json(position),
            }
        ), 201

    @app.route("/createcandidates", methods=["POST"])
    def create_candidate():
        req = load_request(NewCandidateRequest, request.get_json(silent=True))

        if db.session.get(Position, req.position_id) is None:
            raise PositionNotFound(req.position_id)

        candidate = Candidate(name=req.name, position_id=req.position_id)
        try:
            db.session.add(candidate)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            return jsonify({"error": "Failed to create candidate"}), 500

        return jsonify(
            {
                "message": "Candidate created successfully",
                "candidate": _candidate_json(candidate),
            }
        ), 201

    @app.route("/categories")
    def list_categories():
        categories = Category.query.order_by(Category.id.desc()).all()
        return jsonify([_category_json(category) for category in categories]), 200

    @app.route("/positions")
    def list_positions():
        category_id = _id_arg("category_id")
        if category_id is not None:
            positions = (
                Position.query.filter_by(category_id=category_id)
                .order_by(Position.id)
                .all()
            )
            return jsonify([_position_json(position) for position in positions]), 200

        grouped = []
        for category in Category.query.order_by(Category.id).all():
            positions = sorted(category.positions, key=lambda position: position.id)
            if not positions:
                continue
            grouped.append(
                {
                    "category_id": category.id,
                    "category_name": category.name,
                    "positions": [_position_json(position) for position in positions],
                }
            )
        return jsonify(grouped), 200

    @app.route("/candidates")
    def list_candidates():
        position_id = _id_arg("position_id")
        if position_id is not None:
            candidates = (
                Candidate.query.filter_by(position_id=position_id)
                .order_by(Candidate.id)
                .all()
            )
            return jsonify([_candidate_json(candidate) for candidate in candidates]), 200

        grouped = []
        for position in Position.query.order_by(Position.id).all():
            candidates = sorted(position.candidates, key=lambda candidate: candidate.id)
            if not candidates:
                continue
            grouped.append(
                {
                    "position_id": position.id,
                    "position_name": position.name,
                    "category_name": position.category.name if position.category else None,
                    "candidates": [_candidate_json(candidate) for candidate in candidates],
                }
            )
        return jsonify(grouped), 200
