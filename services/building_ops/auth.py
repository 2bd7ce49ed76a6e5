"""
Authentication module for the Building Ops Service.

Two clients call this service: the scheduler that runs syncs, aggregation
and conflict detection, and the portal frontend.
"""

from typing import Any, Callable, Dict, List

from fastapi import Request

from services.building_ops.settings import get_settings
from services.common.api_key_auth import (
    APIKeyConfig,
    make_service_permission_required,
    make_verify_service_authentication,
)

API_KEY_CONFIGS: Dict[str, APIKeyConfig] = {
    "api_scheduler_building_ops_key": APIKeyConfig(
        client="scheduler",
        service="building-ops-access",
        permissions=[
            "read_events",
            "write_raw_events",
            "run_aggregation",
            "run_conflicts",
            "read_resources",
            "write_resources",
        ],
        settings_key="api_scheduler_building_ops_key",
    ),
    "api_frontend_building_ops_key": APIKeyConfig(
        client="frontend",
        service="building-ops-access",
        permissions=[
            "read_events",
            "write_raw_events",
            "read_matches",
            "write_matches",
            "check_availability",
            "read_resources",
            "manage_aliases",
        ],
        settings_key="api_frontend_building_ops_key",
    ),
}

# FastAPI dependencies
verify_service_authentication = make_verify_service_authentication(
    API_KEY_CONFIGS, get_settings
)


def service_permission_required(
    required_permissions: List[str],
) -> Callable[[Request], Any]:
    return make_service_permission_required(
        required_permissions, API_KEY_CONFIGS, get_settings
    )
