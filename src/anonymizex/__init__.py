"""AnonymizeX: face-region anonymization for raster images."""

__version__ = "0.1.0"
