"""Identifier hashing for logs.

Subject identifiers and free-text notes never reach application logs in
the clear. Services log the salted hash of a subject id and the plain
SHA-256 fingerprint of any note they handled.
"""
import hashlib
import logging
from typing import Optional

logger = logging.getLogger(__name__)

MIN_SALT_LENGTH = 32

# Loaded from the secret store at service startup.
_PII_SALT: Optional[str] = None


def configure_pii_salt(salt: str) -> None:
    """Configure the salt used by hash_pii().

    Must be called during application startup before any subject id is
    logged.

    Args:
        salt: Secret salt value

    Raises:
        ValueError: If salt is empty or shorter than 32 characters
    """
    global _PII_SALT
    if not salt or len(salt) < MIN_SALT_LENGTH:
        logger.critical(
            "PII_SALT_CONFIGURATION_FAILED",
            extra={"reason": "Salt too short or empty", "min_length": MIN_SALT_LENGTH}
        )
        raise ValueError(f"PII salt must be at least {MIN_SALT_LENGTH} characters")

    _PII_SALT = salt
    logger.info("PII_SALT_CONFIGURED", extra={"salt_length": len(salt)})


def hash_pii(value: str) -> str:
    """Hash a subject identifier for safe logging.

    Args:
        value: Subject id, email or other personal identifier

    Returns:
        64-character hex digest

    Raises:
        RuntimeError: If the salt has not been configured
    """
    if _PII_SALT is None:
        logger.critical(
            "PII_HASH_FAILED",
            extra={"reason": "Salt not configured", "action": "call configure_pii_salt()"}
        )
        raise RuntimeError("PII salt not configured. Call configure_pii_salt() first.")

    return hashlib.sha256(f"{_PII_SALT}{value}".encode()).hexdigest()


def hash_text_for_audit(text: str) -> str:
    """Fingerprint a free-text note without exposing its content."""
    return hashlib.sha256(text.encode()).hexdigest()
