"""Parsers for transaction batch files."""

from .batch_parser import BatchParser

__all__ = ["BatchParser"]
