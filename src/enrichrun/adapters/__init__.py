"""Adapters connecting the enrichment domain to HTTP services and storage."""
