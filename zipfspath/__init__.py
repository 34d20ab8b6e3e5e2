"""ZIP entry path normalisation, ZIP time and glob helpers, and a header inspection tool."""

__version__ = "0.1.0"
__all__ = ["utils", "pathnorm", "zipinfo"]