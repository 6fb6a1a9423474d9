"""
Converters that turn CBR and PDF files into CBZ archives.
"""

from cbztools.convert.cbr import convert_cbr
from cbztools.convert.pdf import convert_pdf

__all__ = ["convert_cbr", "convert_pdf"]
