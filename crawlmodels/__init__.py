"""Crawl item trees, tree utilities and canonical URL handling for web crawlers."""

__version__ = "0.1.0"
__all__ = ["item", "tree", "url"]