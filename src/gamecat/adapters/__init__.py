"""Adapters connecting the domain to storage and input formats."""
