"""Path-addressed object storage layer.

This module maps values onto files and index-named folder collections
under configured storage roots, with pluggable value serializers.
"""
