"""evalround: questionnaire rounds stored as positional rows.

Boundaries:
- core: positional keys, round identifiers, error taxonomy
- codec: tree <-> flat row encoding
- aggregation: weighted statistics over partial aggregates
- db: row store (schema, session, repository)
- service: round orchestration over the row store
- api: HTTP façade
"""
