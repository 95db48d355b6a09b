"""Adapters that connect the shinkan core to feeds, APIs and storage."""
