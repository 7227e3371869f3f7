"""Validation and SAT-style scoring for practice test attempts."""
from .scoring import score_attempt
from .validators import validate_test, validate_test_attempt

__all__ = ["score_attempt", "validate_test", "validate_test_attempt"]
