"""Task tracking service with a realtime kanban board."""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
