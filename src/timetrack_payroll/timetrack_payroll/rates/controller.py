from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import current_actor, json_body, login_required
from ..container import Container
from ..users.service import rate_to_dict


def register(app: Flask, container: Container) -> None:
    auth = login_required(container)

    @app.route("/api/users/<int:user_id>/rates", methods=["GET"], endpoint="list_rates")
    @auth
    def list_rates(user_id: int):
        rates = container.rate_service.list_rates(actor=current_actor(), user_id=user_id)
        return jsonify([rate_to_dict(r) for r in rates])

    @app.route("/api/users/<int:user_id>/rates", methods=["POST"], endpoint="create_rate")
    @auth
    def create_rate(user_id: int):
        body = json_body()
        rate = container.rate_service.create_rate(
            actor=current_actor(),
            user_id=user_id,
            rate=body.get("rate"),
            valid_from=body.get("valid_from"),
        )
        return jsonify(rate_to_dict(rate)), 201

    @app.route("/api/users/<int:user_id>/rates", methods=["PUT"], endpoint="update_rate")
    @auth
    def update_rate(user_id: int):
        body = json_body()
        rate = container.rate_service.update_rate(
            actor=current_actor(),
            user_id=user_id,
            rate_id=body.get("rateId"),
            rate=body.get("rate"),
            valid_from=body.get("valid_from"),
        )
        return jsonify(rate_to_dict(rate))
