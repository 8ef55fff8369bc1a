import os
import re

DEFAULT_SNAPSHOT_DIR = "/tmp"


def camera_safe_name(name: str) -> str:
    """Returns the camera name with each run of whitespace replaced by an underscore."""
    return re.sub(r"\s+", "_", name)


def get_snapshot_path(camera_name: str, snapshot_dir: str = DEFAULT_SNAPSHOT_DIR) -> str:
    """Returns the path the latest snapshot of a camera is written to."""
    return os.path.join(snapshot_dir, f"{camera_safe_name(camera_name)}.jpg")
