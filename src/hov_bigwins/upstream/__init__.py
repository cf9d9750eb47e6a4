"""HoV upstream events API integration."""

from hov_bigwins.upstream.fetcher import HttpEventFetcher

__all__ = ["HttpEventFetcher"]
