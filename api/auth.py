"""
Authentication blueprint:
- POST /auth/register
- POST /auth/login
- POST /auth/refresh
- POST /auth/logout
- GET  /auth/me
- POST /auth/sessions/<username>/revoke (admin only) -> force logout

Access tokens are short-lived JWTs; refresh tokens are opaque random
strings stored in the refresh_tokens table and rotated on every use.
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify, g, abort, current_app

from models.schemas.auth import (
    RegisterSchema,
    LoginSchema,
    RefreshRequestSchema,
    TokenPairSchema,
    UserOutSchema,
)
from utils.decorators import jwt_required, roles_required

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()
refresh_request_schema = RefreshRequestSchema()
token_pair_schema = TokenPairSchema()
user_out_schema = UserOutSchema()


def _gateway():
    return current_app.extensions["auth_gateway"]


@bp.post("/register")
def register():
    """
    Register a new user.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            username: { type: string }
            password: { type: string }
            roles: { type: array, items: { type: string } }
    responses:
      201:
        description: Created
      400:
        description: Username already taken or invalid role
      422:
        description: Validation error
    """
    payload = request.get_json(silent=True) or {}
    data = register_schema.load(payload)

    roles = data.get("roles") or current_app.config["DEFAULT_ROLES"]
    unknown = sorted(set(roles) - set(current_app.config["ALLOWED_ROLES"]))
    if unknown:
        abort(400, description=f"Invalid role: {', '.join(unknown)}")

    matcher = current_app.extensions["credential_matcher"]
    if matcher.exists(data["username"]):
        abort(400, description="Username is already taken")

    user = matcher.register(data["username"], data["password"], roles)
    return jsonify({"data": user_out_schema.dump(user)}), 201


@bp.post("/login")
def login():
    """
    Login: return access_token and refresh_token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             username: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Invalid username or password
    """
    payload = request.get_json(silent=True) or {}
    data = login_schema.load(payload)
    pair = _gateway().login(data["username"], data["password"])
    return jsonify(token_pair_schema.dump(pair)), 200


@bp.post("/refresh")
def refresh():
    """
    Exchange a refresh token for a new access and refresh token (rotation)
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refresh_token: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      403:
        description: Refresh token not found, revoked or expired
    """
    payload = request.get_json(silent=True) or {}
    data = refresh_request_schema.load(payload)
    pair = _gateway().refresh(data["refresh_token"])
    return jsonify(token_pair_schema.dump(pair)), 200


@bp.post("/logout")
def logout():
    """
    Logout: revokes every refresh token of the token's owner
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refresh_token: { type: string }
    responses:
      200:
        description: Logged out
      403:
        description: Refresh token not found, revoked or expired
    """
    payload = request.get_json(silent=True) or {}
    data = refresh_request_schema.load(payload)
    _gateway().logout(data["refresh_token"])
    return jsonify({"message": "Logged out successfully"}), 200


@bp.get("/me")
@jwt_required()
def me():
    """
    Identity carried by the access token
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: Subject and scopes
      401:
        description: Missing, invalid or expired access token
    """
    return jsonify({"subject": g.current_subject, "scopes": sorted(g.current_scopes)}), 200


@bp.post("/sessions/<username>/revoke")
@roles_required(["admin"])
def revoke_sessions(username):
    """
    Revoke every refresh token of a user (admin only)
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    parameters:
      - in: path
        name: username
        type: string
        required: true
    responses:
      200:
        description: Number of refresh tokens revoked
      403:
        description: Insufficient role
    """
    count = current_app.extensions["refresh_engine"].revoke_for_subject(username)
    return jsonify({"subject": username, "revoked": count}), 200
