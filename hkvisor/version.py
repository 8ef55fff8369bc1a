"""
Version information for hkvisor.
This file is automatically updated during the build process.
"""

VERSION = "0.1.0"  # Will be replaced with Git tag version during build
BUILD_NUMBER = (
    "0"  # Will be replaced with 0 for releases, commit count for development builds
)

# Full version string including build number
FULL_VERSION = f"{VERSION}+{BUILD_NUMBER}"


def get_full_version():
    """Get the full version string including build number."""
    return FULL_VERSION
