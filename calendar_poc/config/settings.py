"""Settings loaders with environment variable and Docker secrets integration."""
from __future__ import annotations
import os
import secrets
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


DEMO_ISSUER = "http://localhost:8080/realms/demo"


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path("/run/secrets") / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                print(f"[settings] ✓ Loaded {secret_name} from /run/secrets")
                return secret_value
        except OSError as e:
            print(f"[settings] ✗ Failed to read /run/secrets/{secret_name}: {e}")

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            return secret_value

    return None


def _get_or_generate(var_name: str, demo_default: Optional[str] = None, required: bool = True, demo_mode: bool = False) -> str:
    """Get environment variable or use demo default."""
    value = os.environ.get(var_name)
    if value:
        return value

    if demo_mode and demo_default is not None:
        print(f"[demo-mode] Using default for {var_name}")
        os.environ[var_name] = demo_default
        return demo_default

    if not required:
        return ""

    raise RuntimeError(f"Environment variable {var_name} is required in production mode.")


def _int_env(var_name: str, default: int) -> int:
    raw = os.environ.get(var_name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"Environment variable {var_name} must be an integer, got {raw!r}.") from None


def _demo_mode() -> bool:
    return os.environ.get("DEMO_MODE", "false").lower() == "true"


def _log_level() -> str:
    return os.environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO"


# ─────────────────────────────────────────────────────────────────────────────
# Calendar service (resource server)
# ─────────────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class CalendarServiceConfig:
    """Calendar service configuration container."""
    demo_mode: bool

    # Token validation
    keycloak_issuer: str
    keycloak_server_url: str = ""
    jwt_audience: str = ""
    jwt_leeway: int = 5

    # Authorization
    required_role: str = "my-role"

    log_level: str = "INFO"

    @property
    def jwks_url(self) -> str:
        """JWKS endpoint of the realm (internal URL)."""
        return f"{self.keycloak_server_url.rstrip('/')}/protocol/openid-connect/certs"


def load_calendar_settings() -> CalendarServiceConfig:
    """Load calendar service settings from the environment."""
    demo_mode = _demo_mode()

    keycloak_issuer = _get_or_generate(
        "KEYCLOAK_ISSUER",
        demo_default=DEMO_ISSUER if demo_mode else None,
        demo_mode=demo_mode,
    )
    keycloak_server_url = os.environ.get("KEYCLOAK_SERVER_URL", keycloak_issuer)

    required_role = os.environ.get("CALENDAR_REQUIRED_ROLE", "my-role").strip() or "my-role"

    mode_label = "DEMO" if demo_mode else "PRODUCTION"
    print(f"[settings] Mode={mode_label}; issuer={keycloak_issuer}; required_role={required_role}")

    return CalendarServiceConfig(
        demo_mode=demo_mode,
        keycloak_issuer=keycloak_issuer,
        keycloak_server_url=keycloak_server_url,
        jwt_audience=os.environ.get("JWT_AUDIENCE", "").strip(),
        jwt_leeway=_int_env("JWT_LEEWAY", 5),
        required_role=required_role,
        log_level=_log_level(),
    )


# ─────────────────────────────────────────────────────────────────────────────
# Frontend (OIDC client)
# ─────────────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class FrontendConfig:
    """Frontend application configuration container."""
    demo_mode: bool

    # Flask
    secret_key: str
    session_cookie_secure: bool = True

    # Keycloak/OIDC
    keycloak_issuer: str = ""
    keycloak_server_url: str = ""
    keycloak_public_issuer: str = ""
    keycloak_realm: str = "demo"

    # OIDC Client
    oidc_registration_id: str = "keycloak"
    oidc_client_id: str = "frontend-app"
    oidc_client_secret: str = ""
    oidc_redirect_uri: str = ""
    post_logout_redirect_uri: str = ""
    token_refresh_leeway: int = 60

    # Authorization
    required_role: str = "my-role"

    # Calendar backend
    calendar_service_url: str = "http://localhost:9090"
    calendar_request_timeout: int = 10
    calendar_max_response_bytes: int = 16 * 1024 * 1024

    log_level: str = "INFO"


def _realm_from_issuer(issuer: str) -> str:
    _, sep, realm = issuer.rstrip("/").partition("/realms/")
    return realm if sep and realm else "demo"


def load_frontend_settings() -> FrontendConfig:
    """Load frontend settings from environment and /run/secrets."""
    demo_mode = _demo_mode()

    secret_key = _load_secret_from_file("flask_secret_key", "FLASK_SECRET_KEY")
    if not secret_key:
        if not demo_mode:
            raise RuntimeError("FLASK_SECRET_KEY not found in /run/secrets or environment")
        secret_key = secrets.token_urlsafe(48)
        os.environ["FLASK_SECRET_KEY"] = secret_key
        print("[demo-mode] Generated temporary FLASK_SECRET_KEY")

    oidc_client_secret = _load_secret_from_file("oidc_client_secret", "OIDC_CLIENT_SECRET") or ""

    session_secure_str = os.environ.get("FLASK_SESSION_COOKIE_SECURE", "true")
    session_cookie_secure = session_secure_str.lower() == "true"

    keycloak_issuer = _get_or_generate(
        "KEYCLOAK_ISSUER",
        demo_default=DEMO_ISSUER if demo_mode else None,
        demo_mode=demo_mode,
    )
    keycloak_server_url = os.environ.get("KEYCLOAK_SERVER_URL", keycloak_issuer)
    keycloak_public_issuer = os.environ.get("KEYCLOAK_PUBLIC_ISSUER", keycloak_issuer)

    oidc_client_id = _get_or_generate("OIDC_CLIENT_ID", demo_default="frontend-app", demo_mode=demo_mode)
    oidc_redirect_uri = _get_or_generate(
        "OIDC_REDIRECT_URI",
        demo_default="http://localhost:5000/callback" if demo_mode else None,
        demo_mode=demo_mode,
    )
    post_logout_redirect_uri = _get_or_generate(
        "POST_LOGOUT_REDIRECT_URI",
        demo_default="http://localhost:5000/" if demo_mode else None,
        demo_mode=demo_mode,
    )

    calendar_service_url = os.environ.get("CALENDAR_SERVICE_URL", "http://localhost:9090").rstrip("/")
    required_role = os.environ.get("APP_REQUIRED_ROLE", "my-role").strip() or "my-role"

    mode_label = "DEMO" if demo_mode else "PRODUCTION"
    print(f"[settings] Mode={mode_label}; client_id={oidc_client_id}; calendar={calendar_service_url}")

    if demo_mode:
        print("[settings] WARNING: Demo defaults in use. Do not deploy with these defaults.")

    return FrontendConfig(
        demo_mode=demo_mode,
        secret_key=secret_key,
        session_cookie_secure=session_cookie_secure,
        keycloak_issuer=keycloak_issuer,
        keycloak_server_url=keycloak_server_url,
        keycloak_public_issuer=keycloak_public_issuer,
        keycloak_realm=_realm_from_issuer(keycloak_issuer),
        oidc_registration_id=os.environ.get("OIDC_REGISTRATION_ID", "keycloak").strip() or "keycloak",
        oidc_client_id=oidc_client_id,
        oidc_client_secret=oidc_client_secret,
        oidc_redirect_uri=oidc_redirect_uri,
        post_logout_redirect_uri=post_logout_redirect_uri,
        token_refresh_leeway=_int_env("OIDC_TOKEN_REFRESH_LEEWAY", 60),
        required_role=required_role,
        calendar_service_url=calendar_service_url,
        calendar_request_timeout=_int_env("CALENDAR_REQUEST_TIMEOUT", 10),
        calendar_max_response_bytes=_int_env("CALENDAR_MAX_RESPONSE_BYTES", 16 * 1024 * 1024),
        log_level=_log_level(),
    )
