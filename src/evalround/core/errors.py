"""Error taxonomy for round storage.

Non-fatal decode issues (malformed positions, orphan leaves) are not
raised; the codec records them as DroppedRow diagnostics. Everything here
is raised to the caller so it can retry, prompt, or abort.
"""

from __future__ import annotations


class MalformedPositionError(ValueError):
    """A section2 value that cannot be read as a position."""

    def __init__(self, section2: object):
        self.section2 = section2
        super().__init__(f"Malformed position: {section2!r}")


class RoundError(Exception):
    """Base class for round storage failures."""

    def __init__(self, round_id: int, message: str):
        self.round_id = round_id
        super().__init__(message)


class RoundNotFoundError(RoundError):
    """No section records or rows exist for the round."""

    def __init__(self, round_id: int):
        super().__init__(round_id, f"Round {round_id} not found")


class DuplicateRoundError(RoundError):
    """A round with this id already has stored structure."""

    def __init__(self, round_id: int):
        super().__init__(
            round_id,
            f"Round {round_id} already exists; edit it instead of creating it again",
        )


class StructuralConflictError(RoundError):
    """Existing rows cannot be deleted because answers still reference them."""

    def __init__(self, round_id: int, table: str):
        self.table = table
        super().__init__(
            round_id,
            f"Cannot replace structure of round {round_id}: answers still reference "
            f"{table}. Clear dependent answers first.",
        )


class SchemaTypeMismatchError(RoundError):
    """The store rejected a decimal-shaped section2 value."""

    def __init__(self, round_id: int, value: str | None = None):
        self.value = value
        detail = f" (value {value!r})" if value else ""
        super().__init__(
            round_id,
            f"Store rejected section2{detail} for round {round_id}: "
            "the column must be a text or numeric type, not integer",
        )


class ReplaceIncompleteError(RoundError):
    """Old structure was deleted but the new structure was not written.

    The round is empty in the store. ``pending_rows`` and
    ``pending_sections`` hold what still needs to be inserted.
    """

    def __init__(
        self,
        round_id: int,
        pending_sections: list,
        pending_rows: list,
        cause: Exception,
    ):
        self.pending_sections = pending_sections
        self.pending_rows = pending_rows
        self.cause = cause
        super().__init__(
            round_id,
            f"Round {round_id} was cleared but its new structure was not saved: {cause}",
        )
