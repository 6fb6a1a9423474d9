"""
Project-wide constants that are unlikely to change at runtime.
"""

# First four bytes of a ZIP archive: local file header, empty archive, spanned archive
ZIP_SIGNATURES = (
    b"PK\x03\x04",
    b"PK\x05\x06",
    b"PK\x07\x08",
)

# "Rar!" prefixes both the RAR 1.5 (Rar!\x1a\x07\x00) and RAR 5.0 (Rar!\x1a\x07\x01\x00) markers
RAR_SIGNATURE = b"Rar!"

HEADER_SIZE = 4

CBZ_EXTENSION = ".cbz"
CBR_EXTENSION = ".cbr"
PDF_EXTENSION = ".pdf"

CONVERTED_DIR = "converted"
CLEANED_DIR = "cleaned"
UPSCALED_DIR = "upscaled"

JUNK_BASENAMES = frozenset({".DS_Store", "Thumbs.db"})
APPLEDOUBLE_PREFIX = "._"
MACOSX_DIR = "__MACOSX"

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp")
JPEG_EXTENSIONS = (".jpg", ".jpeg")

REALESRGAN_BINARY = "realesrgan-ncnn-vulkan"
REALESRGAN_USAGE_BANNER = "Usage: realesrgan-ncnn-vulkan"
REALESRGAN_MODELS = (
    "realesrgan-x4plus",
    "realesrgan-x4plus-anime",
    "realesr-animevideov3",
)
