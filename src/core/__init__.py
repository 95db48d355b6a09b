"""Core domain package for shinkan.

Core contains notification rules, C-code decoding, dedup and the book
processing pipeline without any feed, HTTP or warehouse-specific code,
keeping the business logic portable.
"""
