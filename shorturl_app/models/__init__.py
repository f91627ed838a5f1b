"""
Database models for the short URL service.

Both tables live in the same relational store: urls holds the short links,
clicks holds one row per redirect.
"""

from .url import URL
from .click import Click

__all__ = ["URL", "Click"]
