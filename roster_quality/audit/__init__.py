"""Audit-trail writers for quality checks."""

from .logger import AuditLogger, HttpAuditLogger, JsonlAuditLogger

__all__ = ["AuditLogger", "HttpAuditLogger", "JsonlAuditLogger"]
