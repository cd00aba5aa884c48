"""Garden visualization feature module."""

from app.features.garden.layout import MODES, compute_layout, phyllotaxis_position

__all__ = ["MODES", "compute_layout", "phyllotaxis_position"]
