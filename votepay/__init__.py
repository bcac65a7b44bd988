from flask import Flask

from votepay.commands import register_commands
from votepay.config import Config
from votepay.extensions import cors, db, migrate
from votepay.routes import register_routes
from votepay.services.gateway import PaymentGatewayClient


def create_app(test_config=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    db.init_app(app)
    migrate.init_app(app, db)
    cors.init_app(
        app,
        origins=app.config["CORS_ORIGINS"],
        methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Origin", "Content-Type", "Accept", "Authorization"],
        expose_headers=["Content-Length"],
        supports_credentials=True,
        max_age=12 * 60 * 60,
    )

    app.extensions["payment_gateway"] = PaymentGatewayClient.from_config(app.config)

    register_routes(app)
    register_commands(app)
    return app


__all__ = ["db", "migrate", "create_app"]
