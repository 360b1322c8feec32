"""Craigslist job search reporter."""
