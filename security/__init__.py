"""Credential primitives and request authorization."""
