#
# src/watchrun/runtime/__init__.py
#
"""
Runtime sub-package: cancellation tokens, the watch state machine, the
controller that drives it, and the orchestrator that wires everything up.
"""

# 🔼⚙️
