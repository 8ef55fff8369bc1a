"""
hkvisor - Email snapshots of motion events reported by Hikvision IP cameras.
"""

from .hkvisor_app import HkvisorApp
from .version import VERSION as __version__, FULL_VERSION as __version_full__

__all__ = ["HkvisorApp", "__version__", "__version_full__"]
