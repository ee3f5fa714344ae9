"""Feedback text and spoken feedback."""
