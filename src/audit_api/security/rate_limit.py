"""Rate limiting configuration for security-sensitive endpoints."""

from ipaddress import ip_address, ip_network
from typing import Sequence

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from audit_api.config import get_settings


def _get_trusted_proxies() -> Sequence[str]:
    """Get list of trusted proxy IP ranges from configuration.

    Returns:
        List of IP addresses or CIDR ranges that are trusted proxies.
    """
    settings = get_settings()

    if settings.trusted_proxies_list:
        return settings.trusted_proxies_list

    # Default: trust localhost and common private ranges for development
    if settings.environment == "development":
        return ["127.0.0.1", "::1", "10.0.0.0/8", "172.16.0.0/12", "192.168.0.0/16"]

    # In production, require explicit configuration
    return []


def _is_trusted_proxy(client_ip: str, trusted_proxies: Sequence[str]) -> bool:
    """Check if client IP is from a trusted proxy."""
    if not trusted_proxies:
        return False

    try:
        addr = ip_address(client_ip)
        for proxy in trusted_proxies:
            if "/" in proxy:
                if addr in ip_network(proxy, strict=False):
                    return True
            elif addr == ip_address(proxy):
                return True
    except ValueError:
        return False

    return False


def get_real_client_ip(request: Request) -> str:
    """Extract real client IP, handling reverse proxy headers securely.

    Only trusts X-Forwarded-For / X-Real-IP from configured trusted proxies.

    Args:
        request: The incoming request object.

    Returns:
        The client IP address.
    """
    direct_ip = get_remote_address(request)

    if _is_trusted_proxy(direct_ip, _get_trusted_proxies()):
        for candidate in (
            (request.headers.get("X-Forwarded-For") or "").split(",")[0].strip(),
            (request.headers.get("X-Real-IP") or "").strip(),
        ):
            if not candidate:
                continue
            try:
                ip_address(candidate)
                return candidate
            except ValueError:
                continue

    return direct_ip


def _get_rate_limit_settings() -> dict[str, str]:
    """Get rate limit strings from configuration."""
    settings = get_settings()
    return {
        "default": f"{settings.rate_limit_default}/minute",
        "auth_login": f"{settings.rate_limit_auth_login}/minute",
        "auth_refresh": f"{settings.rate_limit_auth_refresh}/minute",
        "auth_password_change": f"{settings.rate_limit_auth_password_change}/minute",
        "auth_password_reset": f"{settings.rate_limit_auth_password_reset}/minute",
    }


_settings = get_settings()
_rate_limits = _get_rate_limit_settings()

limiter = Limiter(
    key_func=get_real_client_ip,
    default_limits=[_rate_limits["default"]],
    storage_uri=_settings.rate_limit_storage_uri,
    enabled=_settings.rate_limit_enabled,
)

# Rate limit constants for different endpoint types
AUTH_LOGIN_LIMIT = _rate_limits["auth_login"]
AUTH_REFRESH_LIMIT = _rate_limits["auth_refresh"]
AUTH_PASSWORD_CHANGE_LIMIT = _rate_limits["auth_password_change"]
AUTH_PASSWORD_RESET_LIMIT = _rate_limits["auth_password_reset"]
API_DEFAULT_LIMIT = _rate_limits["default"]
