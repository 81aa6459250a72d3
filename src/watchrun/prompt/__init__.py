#
# src/watchrun/prompt/__init__.py
#
"""
Pattern prompt sub-package: typeahead over cached test titles.
"""

from .matching import CachedTestRecord, compile_pattern, highlight, match_titles, scroll
from .pattern_prompt import PatternPrompt
from .rendering import ConsoleLineRenderer, LineRenderer

__all__ = [
    "CachedTestRecord",
    "ConsoleLineRenderer",
    "LineRenderer",
    "PatternPrompt",
    "compile_pattern",
    "highlight",
    "match_titles",
    "scroll",
]

# 🔼⚙️
