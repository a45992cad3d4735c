"""
vp-common: Shared library for VoxPay.

Provides the common data models, configuration management, Redis
messaging wrapper, and structured logging setup used by the VoxPay
checkout service.
"""

from vp_common.config import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
