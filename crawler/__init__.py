"""
Sitemap crawler: resilient fetching, link extraction and a bounded worker pool.
"""

__version__ = "1.0.0"
