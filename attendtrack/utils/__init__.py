"""Shared helpers: request validation and the organization clock."""
