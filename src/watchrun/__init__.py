#
# src/watchrun/__init__.py
#
"""
watchrun: interactive watch mode for test runs.

Reruns tests on file changes or keypresses, cancels in-flight runs
cooperatively, and fans run events out to pluggable reporters.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("watchrun")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

__all__ = ["__version__"]

# 🔼⚙️
