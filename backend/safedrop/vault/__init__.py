"""Vault module for in-memory secret escrow."""

from .safe import Safe
from .store import Vault, generate_safe_id

__all__ = [
    'Safe',
    'Vault',
    'generate_safe_id',
]
