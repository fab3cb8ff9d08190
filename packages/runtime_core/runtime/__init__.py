"""Baseline service catalog and the composition-root bootstrap."""

from .bootstrap import (
    RuntimeServices,
    find_root_dialog,
    get_runtime_services,
    normalize_configuration,
    register_baseline_services,
    seed_services,
)
from .core_bot import CoreBot, CoreBotAdapter, add_core_bot
from .features import MiddlewareSet, add_features
from .resources import ResourceExplorer, add_resource_explorer
from .skills import add_credentials, add_skills
from .storage import add_storage, select_storage
from .telemetry import add_telemetry

__all__ = [
    "CoreBot",
    "CoreBotAdapter",
    "MiddlewareSet",
    "ResourceExplorer",
    "RuntimeServices",
    "add_core_bot",
    "add_credentials",
    "add_features",
    "add_resource_explorer",
    "add_skills",
    "add_storage",
    "add_telemetry",
    "find_root_dialog",
    "get_runtime_services",
    "normalize_configuration",
    "register_baseline_services",
    "seed_services",
    "select_storage",
]
