"""MindCheck wellness check-in platform.

Crisis detection and adaptive intervention recommendation engine, plus the
thin persistence, cache and notification adapters the surrounding service
uses to drive it.
"""

__version__ = "1.0.0"
