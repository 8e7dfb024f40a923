"""Persistence, blob storage, and logging adapters."""
