"""Event selection policy."""

from hov_bigwins.policy.filter import newer_than, take_oldest

__all__ = ["newer_than", "take_oldest"]
