"""Operational CLI and settings for the bulk loader."""
