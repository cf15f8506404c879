"""
Configuration — Settings parsed from the environment, plus validation.
"""

from .settings import PropertyMap, SyncSettings
from .validator import ConfigStatus, check_settings

__all__ = [
    "ConfigStatus",
    "PropertyMap",
    "SyncSettings",
    "check_settings",
]
