"""Blob storage over UDP using LT fountain codes: codec, wire format and data servers."""

__version__ = "0.1.0"