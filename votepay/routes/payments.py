from flask import current_app, jsonify, request

from votepay.extensions import db
from votepay.schemas import AmountSyncRequest, PaymentPushRequest, load_request
from votepay.services.amount_sync import parse_transaction_report, update_vote_amount
from votepay.services.gateway import generate_external_id, get_payment_gateway


def register_payment_routes(app):
    @app.route("/mpesa", methods=["POST"])
    def mpesa_push():
        push_req = load_request(PaymentPushRequest, request.get_json(silent=True))

        external_id = generate_external_id("TX")
        get_payment_gateway().initiate_payment(
            push_req.phone, push_req.amount, external_id
        )

        return jsonify(
            {
                "message": "MPESA STK push initiated, waiting for callback",
                "transaction": external_id,
            }
        ), 200

    @app.route("/updateDB", methods=["POST"])
    def update_db():
        sync_req = load_request(AmountSyncRequest, request.get_json(silent=True))
        fields = parse_transaction_report(sync_req.text)
        current_app.logger.info("Parsed transaction report: %s", fields)

        update_vote_amount(db.session, fields)
        return jsonify({"message": "Transaction amount updated successfully"}), 200
