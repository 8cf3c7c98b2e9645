# jewel_tryon/__init__.py
"""Landmark-anchored AR jewellery try-on engine."""

__version__ = "0.1.0"
