"""Tile-grid field of view by recursive octant shadowcasting, with fog-of-war glue."""
