"""Core organization logic."""
