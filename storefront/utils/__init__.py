"""
Utility helpers
"""
from .text import slugify, generate_token, hash_token, escape_like
from .pagination import page_offset, page_meta

__all__ = [
    "slugify",
    "generate_token",
    "hash_token",
    "escape_like",
    "page_offset",
    "page_meta",
]
