from flask import jsonify

from votepay.errors import VotepayError
from votepay.routes.admin import register_admin_routes
from votepay.routes.payments import register_payment_routes
from votepay.routes.public import register_public_routes


def register_error_handlers(app):
    @app.errorhandler(VotepayError)
    def handle_votepay_error(exc):
        if exc.status_code >= 500:
            app.logger.error("%s", exc)
        return jsonify({"error": exc.message}), exc.status_code


def register_routes(app):
    register_error_handlers(app)
    register_public_routes(app)
    register_payment_routes(app)
    register_admin_routes(app)
