"""
RnR Engine - Rules engine for "Revolution and Rebellion".

A deterministic, rules-driven server-side engine for the two-player
trading card game. The engine provides:
- Card registry and declarative effect rules
- Game state documents (JSON-compatible, persisted per game id)
- Action validation and processing
- Effect resolution with suspendable target selection
- Phase/turn state machine with end-of-round scoring
- An acknowledgeable event journal
"""

__version__ = "0.1.0"
