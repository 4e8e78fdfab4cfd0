"""Query services.

This package translates query strings into store queries and runs them.
"""
