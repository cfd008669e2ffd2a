"""Signup, login and per-request authentication."""
