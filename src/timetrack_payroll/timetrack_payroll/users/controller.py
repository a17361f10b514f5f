from __future__ import annotations

from flask import Flask, jsonify, request, session

from ..common.web import current_actor, json_body, login_required
from ..container import Container
from .service import parse_role, user_to_dict


def register(app: Flask, container: Container) -> None:
    auth = login_required(container)

    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    def login():
        body = request.get_json(silent=True) or request.form.to_dict()
        s_user = container.auth_service.authenticate(body.get("login", ""), body.get("password", ""))

        session.clear()
        session.permanent = bool(body.get("remember"))
        session["user_id"] = s_user.user_id
        session["name"] = s_user.name
        session["role"] = s_user.role.value

        return jsonify({"id": s_user.user_id, "name": s_user.name, "role": s_user.role.value})

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"success": True})

    @app.route("/api/users", methods=["GET"], endpoint="list_users")
    @auth
    def list_users():
        role = parse_role(request.args.get("role"))
        staff = container.user_service.list_staff(actor=current_actor(), role=role)
        return jsonify([m.to_dict() for m in staff])

    @app.route("/api/users", methods=["POST"], endpoint="create_user")
    @auth
    def create_user():
        body = json_body()
        user = container.user_service.create_user(
            actor=current_actor(),
            login=body.get("login", ""),
            password=body.get("password", ""),
            name=body.get("name", ""),
            position=body.get("position", ""),
            role=parse_role(body.get("role")),
        )
        return jsonify(user_to_dict(user)), 201

    @app.route("/api/users/<int:user_id>", methods=["PUT"], endpoint="update_user")
    @auth
    def update_user(user_id: int):
        body = json_body()
        user = container.user_service.update_user(
            actor=current_actor(),
            user_id=user_id,
            login=body.get("login", ""),
            name=body.get("name", ""),
            position=body.get("position"),
            password=body.get("password") or None,
            role=parse_role(body.get("role")),
        )
        return jsonify(user_to_dict(user))

    @app.route("/api/users/<int:user_id>", methods=["DELETE"], endpoint="delete_user")
    @auth
    def delete_user(user_id: int):
        container.user_service.delete_user(actor=current_actor(), user_id=user_id)
        return jsonify({"message": "User deleted successfully"})

    @app.route("/api/users/me", methods=["GET"], endpoint="me")
    @auth
    def me():
        return jsonify(container.user_service.get_profile(actor=current_actor()).to_dict())

    @app.route("/api/users/change-password", methods=["POST"], endpoint="change_password")
    @auth
    def change_password():
        body = json_body()
        container.user_service.change_password(
            actor=current_actor(),
            current_password=body.get("currentPassword", ""),
            new_password=body.get("newPassword", ""),
        )
        return jsonify({"message": "Password updated successfully"})
