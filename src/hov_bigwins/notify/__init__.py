"""Notification formatting and delivery."""

from hov_bigwins.notify.formatter import format_amount, format_line, shorten_address
from hov_bigwins.notify.webhook import RateLimitPolicy, WebhookPublisher

__all__ = [
    "format_amount", "format_line", "shorten_address",
    "RateLimitPolicy", "WebhookPublisher",
]
