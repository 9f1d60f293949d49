"""Mindo Stack club management API."""
