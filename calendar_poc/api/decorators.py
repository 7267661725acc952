"""
Flask decorators for bearer token authorization of the calendar service.

Implements RFC 6750 (Bearer Token) and validates JWT access tokens issued by
Keycloak, then checks the realm role carried in ``realm_access.roles``.

Security:
- RSA-SHA256 signature verification via JWKS (RFC 7517)
- Expiration, not-before and issuer validation (RFC 7519)
- Audience validation when JWT_AUDIENCE is configured
- JWKS caching (1-hour refresh)
"""

import logging
from functools import wraps
from typing import Optional, Dict, Any

import jwt
from jwt import PyJWKClient
from jwt.exceptions import (
    ExpiredSignatureError,
    ImmatureSignatureError,
    InvalidIssuerError,
    InvalidAudienceError,
    InvalidSignatureError,
    MissingRequiredClaimError,
    DecodeError,
)
from flask import request, jsonify, current_app, g

from calendar_poc.core.claims import has_role, realm_roles

logger = logging.getLogger(__name__)

# Global JWKS client (cached singleton)
_jwks_client: Optional[PyJWKClient] = None


class TokenValidationError(Exception):
    """Exception raised when JWT token validation fails."""
    pass


def get_jwks_client() -> PyJWKClient:
    """
    Get cached JWKS client (singleton pattern).

    Keys are looked up by the ``kid`` of the JWT header, cached (up to 16)
    and refreshed every hour, so Keycloak key rotation is picked up.
    """
    global _jwks_client

    if _jwks_client is None:
        cfg = current_app.config["APP_CONFIG"]
        jwks_url = cfg.jwks_url

        logger.info(f"Initializing JWKS client for: {jwks_url}")

        _jwks_client = PyJWKClient(
            jwks_url,
            cache_keys=True,
            max_cached_keys=16,
            lifespan=3600,
            headers={"User-Agent": "calendar-service/1.0"},
        )

    return _jwks_client


def validate_jwt_token(token: str) -> Dict[str, Any]:
    """
    Validate JWT Bearer token.

    Args:
        token: JWT token string (without "Bearer " prefix)

    Returns:
        dict: Validated token claims

    Raises:
        TokenValidationError: If any validation fails
    """
    cfg = current_app.config["APP_CONFIG"]

    try:
        signing_key = get_jwks_client().get_signing_key_from_jwt(token)

        options = {
            "verify_signature": True,
            "verify_exp": True,
            "verify_nbf": True,
            "verify_iss": True,
            "verify_aud": bool(cfg.jwt_audience),
            "require": ["exp", "iat"],
        }
        claims = jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256"],
            issuer=cfg.keycloak_issuer,
            audience=cfg.jwt_audience or None,
            options=options,
            leeway=cfg.jwt_leeway,
        )

        logger.debug(f"JWT validated for subject: {claims.get('sub')}, client: {claims.get('azp', 'unknown')}")
        return claims

    except ExpiredSignatureError:
        raise TokenValidationError("Token expired (exp claim)")
    except ImmatureSignatureError:
        raise TokenValidationError("Token not yet valid (nbf claim)")
    except InvalidIssuerError as e:
        raise TokenValidationError(f"Invalid issuer (token from wrong Keycloak realm): {e}")
    except InvalidAudienceError as e:
        raise TokenValidationError(f"Invalid audience (token not for this API): {e}")
    except InvalidSignatureError:
        raise TokenValidationError("Invalid signature (token tampered or wrong key)")
    except MissingRequiredClaimError as e:
        raise TokenValidationError(f"Missing required claim: {e}")
    except DecodeError as e:
        raise TokenValidationError(f"Token decode error (malformed JWT): {e}")
    except Exception as e:
        logger.error(f"JWT validation failed: {e}")
        raise TokenValidationError(f"Token validation failed: {e}")


def _unauthorized(detail: str):
    response = jsonify({"error": "Unauthorized", "message": detail})
    response.status_code = 401
    response.headers["WWW-Authenticate"] = 'Bearer realm="calendar-service"'
    return response


def require_realm_role(role: Optional[str] = None):
    """
    Decorator to require a valid Bearer token carrying a Keycloak realm role.

    Args:
        role: Required realm role (defaults to configured ``required_role``)

    Returns:
        401 Unauthorized: Missing, malformed, invalid or expired token
        403 Forbidden: Token lacks the required role

    Example:
        @bp.route("/calendar")
        @require_realm_role()
        def get_calendar():
            ...
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            auth_header = request.headers.get("Authorization", "")

            if not auth_header:
                logger.warning("Request missing Authorization header")
                return _unauthorized("Authorization header required. Use 'Authorization: Bearer <token>'")

            # Scheme names are case-insensitive (RFC 7235)
            scheme, _, token = auth_header.strip().partition(" ")
            if scheme.lower() != "bearer":
                logger.warning("Request with non-Bearer Authorization scheme")
                return _unauthorized("Invalid Authorization header format. Expected 'Bearer <token>'")

            token = token.strip()
            if not token:
                logger.warning("Request with empty Bearer token")
                return _unauthorized("Bearer token is empty")

            try:
                claims = validate_jwt_token(token)
            except TokenValidationError as e:
                logger.warning(f"JWT validation failed: {e}")
                return _unauthorized(str(e))

            required = role or current_app.config["APP_CONFIG"].required_role
            if not has_role(claims, required):
                logger.warning(
                    f"Token for {claims.get('sub')} lacks role {required}; has {sorted(realm_roles(claims))}"
                )
                return jsonify({"error": "Forbidden", "message": f"Required role: {required}"}), 403

            g.oauth_claims = claims

            return fn(*args, **kwargs)

        return wrapper
    return decorator


def get_oauth_claims() -> Optional[dict]:
    """
    Get full OAuth token claims from current request.

    Must be called after @require_realm_role decorator.
    """
    return getattr(g, "oauth_claims", None)
