"""Deferred delivery to Watchtower."""
