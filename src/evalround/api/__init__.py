"""API module for evalround.

Boundary (api layer):
- Validates inputs, delegates to RoundService
- Returns payloads for UI
- Forbidden: positional encoding, statistics computation
"""
