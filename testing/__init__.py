"""
Testing module for Store Finder.

Contains sample model answers and grounding payloads shared by the tests.
"""
