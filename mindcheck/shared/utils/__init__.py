"""Shared utilities for the MindCheck platform."""
from .pii import hash_pii, hash_text_for_audit, configure_pii_salt

__all__ = ["hash_pii", "hash_text_for_audit", "configure_pii_salt"]
