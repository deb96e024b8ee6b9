"""HTTP bridge between a browser rendering layer and the reorder engine."""
