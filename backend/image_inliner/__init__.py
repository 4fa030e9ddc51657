"""
Image Inliner Module

Downloads post images and returns them as Base64 text, so a client can
render a whole feed from one JSON response.
"""

from .inliner import ImageInliner

__all__ = ["ImageInliner"]
