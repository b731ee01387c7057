"""Command line helpers for working with quick search strings."""
