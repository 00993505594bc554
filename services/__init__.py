"""Credential services: access token issuing, refresh sessions and the auth gateway."""
