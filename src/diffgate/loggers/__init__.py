"""Audit loggers."""

from .jsonl import JsonlAuditLogger

__all__ = ["JsonlAuditLogger"]
