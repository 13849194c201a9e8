"""Fullscreen photo frame that shuffles, mats and cross-fades a photo library."""

__version__ = "0.1.0"