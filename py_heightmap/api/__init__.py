"""
HTTP API for heightmap extraction.
"""
