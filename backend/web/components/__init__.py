# SenseiiWyze Component System
# Pure Python Components for type-safe HTML generation

from .base import Component
from .layout import Layout
from .navigation import Navigation

__all__ = [
    "Component",
    "Layout",
    "Navigation",
]
