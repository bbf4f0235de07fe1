"""Round service.

Boundary:
- Orchestrates codec and rollup against one round's stored rows
- Owns the create / replace-all / delete write contracts
- Forbidden: HTTP concerns, recomputing aggregates
"""
