#
# src/watchrun/monitor/__init__.py
#
"""
Filesystem monitoring sub-package.
"""

from .events import FileChangeEvent
from .service import ChangeEventHandler, MonitoringService

__all__ = ["ChangeEventHandler", "FileChangeEvent", "MonitoringService"]

# 🔼⚙️
