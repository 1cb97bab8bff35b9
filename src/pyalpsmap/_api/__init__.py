"""Endpoint modules for the remote map data services."""
