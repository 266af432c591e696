"""
Gang Sheet Builder

Arrange print assets on a fixed-size sheet and export a flattened
300 DPI raster for printing.
"""

__version__ = "0.1.0"
