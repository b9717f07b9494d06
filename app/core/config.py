import os
import logging
from urllib.parse import urlparse
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer value for {name}, using {default}")
        return default


class Settings:
    PROJECT_NAME: str = "Student Registration Document Portal"
    MONGODB_URI: str = os.getenv("MONGODB_URI")
    MONGODB_DB_NAME: str = os.getenv("MONGODB_DB_NAME", "document_portal")
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY")
    JWT_ALGORITHM: str = "HS256"
    # Sessions last one hour, after which the client has to log in again
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = _int_env("JWT_ACCESS_TOKEN_EXPIRE_MINUTES", 60)
    CLIENT_URL: str = os.getenv("CLIENT_URL", "http://localhost:5173")
    SUPABASE_URL: str = os.getenv("SUPABASE_URL")
    SUPABASE_SERVICE_ROLE: str = os.getenv("SUPABASE_SERVICE_ROLE")
    SUPABASE_ANON_PUBLIC: str = os.getenv("SUPABASE_ANON_PUBLIC")
    SUPABASE_BUCKET: str = os.getenv("SUPABASE_BUCKET", "student-documents")
    SIGNED_URL_TTL_SECONDS: int = _int_env("SIGNED_URL_TTL_SECONDS", 900)
    ADMIN_REGISTRATION_CODE: str = os.getenv("ADMIN_REGISTRATION_CODE")
    PORTAL_API_URL: str = os.getenv("PORTAL_API_URL", "http://127.0.0.1:8000")
    POLL_INTERVAL_SECONDS: int = _int_env("POLL_INTERVAL_SECONDS", 30)


settings = Settings()


def mask_secret(val: str) -> str:
    if not val:
        return "<missing>"
    if len(val) <= 8:
        return "*" * len(val)
    return f"{val[:4]}...{val[-4:]}"


def mask_url(url: str) -> str:
    # Keep scheme and host, but strip credentials and path
    try:
        p = urlparse(url)
        netloc = p.hostname or ""
        if p.port:
            netloc = f"{netloc}:{p.port}"
        return f"{p.scheme}://{netloc}"
    except ValueError:
        return mask_secret(url)


if settings.JWT_SECRET_KEY:
    logger.debug(
        "Loaded settings (redacted): %s",
        {
            "SUPABASE_URL": mask_url(settings.SUPABASE_URL) if settings.SUPABASE_URL else None,
            "SUPABASE_SERVICE_ROLE": mask_secret(settings.SUPABASE_SERVICE_ROLE),
            "JWT_SECRET_KEY": mask_secret(settings.JWT_SECRET_KEY),
        },
    )
else:
    logger.warning("JWT_SECRET_KEY is missing or empty, tokens cannot be issued")
