"""LMS HTTP API."""
