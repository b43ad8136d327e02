from __future__ import annotations

from flask import Flask, jsonify, session

from ..common.web import current_user_id, json_body, login_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/signup", methods=["POST"], endpoint="signup")
    def signup():
        data = json_body()
        user = container.auth_service.signup(
            full_name=data.get("name", ""),
            email=data.get("email", ""),
            password=data.get("password", ""),
            admin_join_code=data.get("adminJoinCode"),
        )
        return jsonify({"success": True, "user": user.public_dict()}), 201

    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    def login():
        data = json_body()
        s_user = container.auth_service.authenticate(data.get("email", ""), data.get("password", ""))

        session.clear()
        session.permanent = bool(data.get("rememberMe"))
        session["user_id"] = s_user.user_id
        session["name"] = s_user.full_name
        session["role"] = s_user.role.value

        return jsonify(
            {
                "success": True,
                "user": {
                    "id": s_user.user_id,
                    "name": s_user.full_name,
                    "role": s_user.role.value,
                    "loginStreak": s_user.login_streak,
                },
            }
        )

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"success": True})

    @app.route("/api/auth/profile", methods=["GET"], endpoint="profile")
    @login_required
    def profile():
        user = container.auth_service.get_profile(current_user_id())
        return jsonify({"success": True, "user": user.public_dict()})
