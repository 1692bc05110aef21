"""LMS data models."""
