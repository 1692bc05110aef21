"""Small helpers shared across LMS modules."""
