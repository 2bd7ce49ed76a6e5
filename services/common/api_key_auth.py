"""
Shared API key authentication helpers for Building Ops services.

Each service declares its own API_KEY_CONFIGS (which settings attribute
holds which client's key, and what that client may do) and passes them,
together with its get_settings function, to the dependency factories here.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from fastapi import Request

from services.common.http_errors import AuthError, ErrorCode
from services.common.logging_config import caller_var, get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class APIKeyConfig:
    client: str
    service: str
    permissions: List[str]
    settings_key: str  # attribute on the settings object holding the key value


def build_api_key_mapping(
    api_key_configs: Dict[str, APIKeyConfig], get_settings: Callable[[], Any]
) -> Dict[str, APIKeyConfig]:
    """Map actual API key values to their configurations."""
    settings = get_settings()
    api_key_mapping = {}
    for config in api_key_configs.values():
        actual_key_value = getattr(settings, config.settings_key, None)
        if actual_key_value:
            api_key_mapping[actual_key_value] = config
        else:
            logger.warning(f"API key not found in settings: {config.settings_key}")
    return api_key_mapping


def get_api_key_from_request(request: Request) -> Optional[str]:
    """
    Extract the API key from request headers.

    Supports ``X-API-Key`` and ``Authorization: Bearer <key>``.
    """
    api_key = request.headers.get("X-API-Key")
    if api_key:
        return api_key
    authorization = request.headers.get("Authorization")
    if authorization and authorization.startswith("Bearer "):
        return authorization[len("Bearer ") :]
    return None


def make_verify_service_authentication(
    api_key_configs: Dict[str, APIKeyConfig], get_settings: Callable[[], Any]
) -> Callable[[Request], APIKeyConfig]:
    def verify_service_authentication(request: Request) -> APIKeyConfig:
        """Verify the request's API key and return the matching configuration."""
        api_key = get_api_key_from_request(request)
        if not api_key:
            logger.warning("Missing API key in request headers")
            raise AuthError(message="API key required", status_code=401)

        key_config = build_api_key_mapping(api_key_configs, get_settings).get(api_key)
        if key_config is None:
            logger.warning(f"Invalid API key: {api_key[:4]}...")
            raise AuthError(
                message="Invalid API key",
                code=ErrorCode.ACCESS_DENIED,
                status_code=403,
            )

        request.state.client_name = key_config.client
        caller_var.set(key_config.client)
        return key_config

    return verify_service_authentication


def make_service_permission_required(
    required_permissions: List[str],
    api_key_configs: Dict[str, APIKeyConfig],
    get_settings: Callable[[], Any],
) -> Callable[[Request], Any]:
    verify_service_authentication = make_verify_service_authentication(
        api_key_configs, get_settings
    )

    async def dependency(request: Request) -> str:
        key_config = verify_service_authentication(request)
        missing = [p for p in required_permissions if p not in key_config.permissions]
        if missing:
            logger.warning(
                f"Permission denied: {key_config.client} lacks {missing}",
                client=key_config.client,
                required_permissions=required_permissions,
            )
            raise AuthError(
                message=f"Insufficient permissions. Required: {required_permissions}",
                code=ErrorCode.ACCESS_DENIED,
                status_code=403,
            )
        return key_config.client

    return dependency
