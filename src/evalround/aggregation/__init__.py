"""Aggregation module for round statistics.

Boundary:
- Turns partial aggregate rows and a decoded tree into statistics
- Pure: database reads go through the service and repo
- Forbidden: writing aggregate rows (the recompute job owns them)
"""
