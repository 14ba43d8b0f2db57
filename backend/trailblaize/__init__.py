"""Trailblaize chapter network API."""
