"""Record identifier generation."""

import uuid


def new_record_id() -> str:
    """Return a fresh random (version 4) UUID string.

    Generated locally with no coordination, so the key of a record is known
    before anything is persisted.
    """
    return str(uuid.uuid4())
