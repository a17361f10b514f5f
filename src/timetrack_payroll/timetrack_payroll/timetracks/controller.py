from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import current_actor, json_body, login_required, query_user_id
from ..container import Container


def register(app: Flask, container: Container) -> None:
    auth = login_required(container)

    @app.route("/api/time-tracks", methods=["GET"], endpoint="list_time_tracks")
    @auth
    def list_time_tracks():
        tracks = container.time_track_service.list_tracks(
            actor=current_actor(),
            user_id=query_user_id(),
            on_date=request.args.get("date"),
            start_date=request.args.get("startDate"),
            end_date=request.args.get("endDate"),
        )
        return jsonify([t.to_dict() for t in tracks])

    @app.route("/api/time-tracks", methods=["POST"], endpoint="record_time")
    @auth
    def record_time():
        body = json_body()
        track = container.time_track_service.record_time(
            actor=current_actor(),
            work_date=body.get("date"),
            minutes=body.get("time"),
            comment=body.get("comment", ""),
        )
        return jsonify(track.to_dict()), 201

    @app.route("/api/time-tracks", methods=["PUT"], endpoint="edit_time")
    @auth
    def edit_time():
        body = json_body()
        track = container.time_track_service.edit_time(
            actor=current_actor(),
            track_id=body.get("id"),
            minutes=body.get("time"),
            comment=body.get("comment", ""),
        )
        return jsonify(track.to_dict())

    @app.route("/api/time-tracks", methods=["DELETE"], endpoint="delete_time")
    @auth
    def delete_time():
        body = json_body()
        container.time_track_service.delete_time(actor=current_actor(), track_id=body.get("id"))
        return jsonify({"success": True})

    @app.route("/api/time-tracks/pay", methods=["POST"], endpoint="pay_time_tracks")
    @auth
    def pay_time_tracks():
        body = json_body()
        count = container.payment_service.mark_paid(actor=current_actor(), track_ids=body.get("trackIds"))
        return jsonify({"message": f"Paid {count} time tracks", "count": count})
