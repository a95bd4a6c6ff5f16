"""Time-to-live cache layer.

This module binds cached keys to sidecar metadata records and decides
on each read whether a stored value is still fresh.
"""
