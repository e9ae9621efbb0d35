"""Data models for the file organizer."""
