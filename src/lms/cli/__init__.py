"""LMS command line interface."""
