"""
Upscaling of CBZ pages with Real-ESRGAN and ImageMagick.
"""

from cbztools.upscale.realesrgan import ensure_realesrgan, locate, models_dir, verify
from cbztools.upscale.upscaler import UpscaleOptions, upscale_cbz

__all__ = [
    "UpscaleOptions",
    "ensure_realesrgan",
    "locate",
    "models_dir",
    "upscale_cbz",
    "verify",
]
