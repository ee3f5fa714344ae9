"""Pose sources feeding the rep counter."""
