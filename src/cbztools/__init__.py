"""
cbztools: convert, validate, clean and upscale comic book archives.
"""

__version__ = "0.3.0"
