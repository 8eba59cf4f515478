"""Check-in Service: request entry point for the engine.

Components:
- processor.py: CheckInProcessor wiring classifier, crisis handler,
  scorer, analyzer, storage and cache
- http_handler.py: Flask app exposing classify, analyze, recommend and
  recompute alongside check-in and feedback submission

http_handler is not imported here; importing it configures the PII salt
and builds the Flask app.
"""

from .processor import (
    CheckInOutcome,
    CheckInProcessor,
    ExplainedRecommendation,
    FeedbackOutcome,
    InterventionReport,
)

__all__ = [
    "CheckInOutcome",
    "CheckInProcessor",
    "ExplainedRecommendation",
    "FeedbackOutcome",
    "InterventionReport",
]
