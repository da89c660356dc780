"""Pixel-level anonymization pipeline."""
