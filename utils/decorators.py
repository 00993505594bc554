from __future__ import annotations
from functools import wraps
from flask import request, g, abort, current_app

from services.exceptions import InvalidSignature


def jwt_required():
    """
    Require a valid access token in the Authorization header.
    Only the signature and expiry are checked; no database lookup.
    Sets g.current_subject and g.current_scopes.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            auth = request.headers.get("Authorization", "")
            if not auth.startswith("Bearer "):
                raise InvalidSignature("Missing or invalid Authorization header")
            token = auth.split(" ", 1)[1].strip()
            claims = current_app.extensions["access_issuer"].verify(token)

            g.current_subject = claims.subject
            g.current_scopes = set(claims.scopes)
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def roles_required(required_roles: list[str]):
    """
    Allow access if the token carries ANY of the required roles.
    Deny (403) only if there is NO overlap.
    """
    req = set(required_roles or [])

    def decorator(fn):
        @wraps(fn)
        @jwt_required()
        def wrapper(*args, **kwargs):
            if not (g.current_scopes & req):
                abort(403, description="Insufficient role")
            return fn(*args, **kwargs)

        return wrapper

    return decorator
