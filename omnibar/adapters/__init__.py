"""Adapters implementing the core ports (HTTP, filesystem, desktop host)."""
