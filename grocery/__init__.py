"""Collaborative grocery list API."""
