"""
BattleFlow - Turn-Based Combat Engine

A deterministic, state-store combat engine for role-playing games.
The engine keeps combat logic pure and pushes side effects out to handlers:
- Immutable battle state
- Tagged battle actions
- Pure reducer emitting effect descriptors
- Async effect scheduling by priority
"""

from .flow import BattleFlow

__version__ = "0.1.0"

__all__ = ["BattleFlow", "__version__"]
