from flask import current_app, jsonify, request

from votepay.errors import PendingVoteNotFound
from votepay.extensions import db
from votepay.schemas import MpesaCallback, VoteRequest, load_request
from votepay.services.gateway import get_payment_gateway
from votepay.services.voting import (
    compute_standings,
    compute_voters_summary,
    handle_callback,
    submit_vote,
)


def register_public_routes(app):
    @app.route("/vote", methods=["POST"])
    def vote():
        vote_req = load_request(VoteRequest, request.get_json(silent=True))

        external_id = submit_vote(
            db.session,
            get_payment_gateway(),
            vote_req.voter_name,
            vote_req.voter_phone,
            vote_req.candidate_id,
            vote_req.amount,
            external_id_prefix=current_app.config["EXTERNAL_ID_PREFIX"],
            deduplicate_voters=current_app.config["DEDUPLICATE_VOTERS"],
        )

        return jsonify(
            {
                "message": "Vote recorded pending payment confirmation",
                "externalId": external_id,
            }
        ), 200

    @app.route("/mpesa-callback", methods=["POST"])
    def mpesa_callback():
        callback = load_request(MpesaCallback, request.get_json(silent=True))
        current_app.logger.info(
            "Received M-Pesa callback: %s", callback.model_dump(by_alias=True)
        )

        try:
            final_status = handle_callback(
                db.session,
                callback.external_id,
                callback.transaction_status,
                keep_failed=current_app.config["KEEP_FAILED_VOTES"],
            )
        except PendingVoteNotFound:
            current_app.logger.warning(
                "No pending vote for callback %s", callback.external_id
            )
            return jsonify(
                {
                    "message": "Pending vote not found",
                    "status": "not_found",
                    "externalId": callback.external_id,
                }
            ), 200

        return jsonify(
            {
                "message": f"Vote status updated to {final_status}",
                "status": final_status,
                "externalId": callback.external_id,
            }
        ), 200

    @app.route("/checkcandidatesposition")
    def check_candidates_position():
        standings = compute_standings(
            db.session, unit_price=current_app.config["VOTE_UNIT_PRICE"]
        )
        return jsonify(standings), 200

    @app.route("/voters-summary")
    def voters_summary():
        return jsonify(compute_voters_summary(db.session)), 200
