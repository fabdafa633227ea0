"""PyQt5 rendering of the point layer."""
