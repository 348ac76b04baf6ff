"""Lessons Service: scheduling, coach assignment and lesson listings."""
