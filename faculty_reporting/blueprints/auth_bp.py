"""
Auth blueprint.

Endpoints:
    POST /api/auth/register : create an account
    POST /api/auth/login    : log in (auto-provisions unknown usernames)
"""

from flask import Blueprint, jsonify

from faculty_reporting.blueprints import json_body
from faculty_reporting.services import auth_service

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.route("/register", methods=["POST"])
def register():
    user = auth_service.register_user(json_body())
    return jsonify({"success": True, "message": "Registration successful", "user": user}), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    user = auth_service.login(json_body())
    return jsonify({"success": True, "message": "Login successful", "user": user}), 200
