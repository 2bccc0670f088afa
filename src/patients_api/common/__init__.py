"""Shared helpers for the patients API."""
