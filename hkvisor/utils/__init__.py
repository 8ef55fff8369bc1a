"""
hkvisor Utilities

This package contains utility modules used throughout the hkvisor application.
"""

from .config import Config, load_config
from .multipart import MultipartParser, MultipartPart, get_boundary
from .paths import camera_safe_name, get_snapshot_path
from .time_utils import get_timezone, now_in_timezone, parse_camera_datetime

__all__ = [
    'Config',
    'load_config',
    'MultipartParser',
    'MultipartPart',
    'get_boundary',
    'camera_safe_name',
    'get_snapshot_path',
    'get_timezone',
    'now_in_timezone',
    'parse_camera_datetime',
]
