"""Ingestion layer.

Turns loosely typed upstream payloads into validated feature models.
Nothing here performs I/O.
"""
