"""
Ecosim Grid Ecosystem Simulation

A deterministic, headless ecosystem simulator on a discrete tile grid.
Animals sense food, water, mates and predators, then act through a
per-agent behavior state machine every tick.

Architecture: the world context is the source of truth. Rendering and
telemetry are consumers.
"""

__version__ = "0.1.0"
