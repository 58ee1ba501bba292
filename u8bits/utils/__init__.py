"""Utilities: constants and layout file loading."""
