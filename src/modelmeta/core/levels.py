"""Data levels used to filter fields at projection time."""

from enum import IntEnum


class DataLevel(IntEnum):
    """Pre-defined data levels.

    The higher the level number, the more restricted the field. A projection
    requested at level ``L`` includes every field whose level is ``<= L``.
    """

    # Basic information, usually used when referenced from other models.
    BASIC = 10

    # Short information, usually returned by search queries.
    SHORT = 20

    # Detail information, usually returned by a get request.
    DETAIL = 30

    # Confidential information which is not supposed to be returned.
    CONFIDENTIAL = 40

    # Never returns the field.
    NEVER = 1000


# Level applied when a projection does not request one.
DEFAULT_PROJECTION_LEVEL = DataLevel.NEVER - 1
