"""Packaged default taxonomy and keyword configuration."""
