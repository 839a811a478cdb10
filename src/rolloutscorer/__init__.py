"""
Rollout Scorer.

Scheduled job that scores stabilized service rollouts and publishes
the resulting scorecards for engineering review.
"""

__version__ = "0.1.0"
