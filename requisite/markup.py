"""
Requisite markup: project raw character offsets onto tokens and assignments.

A trace flattens a token list into one entry per raw character, tagged with the
token it belongs to and the zone it sits in (prefix, text or suffix). Both the
status markup and the assignment-at-offset lookup walk that trace.
"""
from collections import namedtuple
from enum import Enum

from .types import Status


class Part(Enum):
    PREFIX = "prefix"
    TEXT = "text"
    SUFFIX = "suffix"


Trace = namedtuple("Trace", ("char", "token", "part"))


def trace(tokens):
    """
    one Trace per raw character of the tokens, in order.

    the text zone is traced over the raw source so offsets line up with the typed
    input even when escapes shorten the decoded text.
    """
    return tuple(
        Trace(char, token, part)
        for token in tokens
        for part, zone in ((Part.PREFIX, token.prefix), (Part.TEXT, token.source), (Part.SUFFIX, token.suffix))
        for char in zone
    )


def status_markup(tokens, cursor):
    """
    return the status of every raw character of the tokens.

    behavior
    - prefix and suffix characters are always VALID.
    - text characters take the status of the assignment owning their token.
    - the active token is the owner of the character before the cursor (the first
      character when the cursor is at 0). INCOMPLETE reads as ERROR anywhere but
      in the active token's text zone, except for command slots.
    """
    if not isinstance(cursor, int):
        raise TypeError("status_markup() cursor must be an integer")
    traces = trace(tokens)
    if not traces:
        return []

    cursor = max(0, min(cursor, len(traces)))
    active = traces[0 if cursor == 0 else cursor - 1]

    statuses = []
    for entry in traces:
        status = Status.VALID
        if entry.part is Part.TEXT and (assignment := entry.token.assignment) is not None:
            status = assignment.status
            if (
                status is Status.INCOMPLETE and
                (entry.token is not active.token or active.part is not Part.TEXT) and
                not assignment.param.is_command
            ):
                status = Status.ERROR
        statuses.append(status)
    return statuses


def assignment_at(tokens, offset, command, successor):
    """
    return the assignment a cursor at offset edits, or None past the input.

    offset 0 is always the command slot. prefix and text characters belong to
    their token's assignment; suffix characters look forward, first to the next
    token's assignment and, after the last token, to successor(assignment).
    """
    if not isinstance(offset, int):
        raise TypeError("assignment_at() offset must be an integer")
    if offset == 0:
        return command

    owners = []
    for index, token in enumerate(tokens):
        owner = token.assignment
        owners.extend([owner] * (len(token.prefix) + len(token.source)))
        if index + 1 < len(tokens):
            forward = tokens[index + 1].assignment
        elif owner is not None:
            forward = successor(owner)
        else:
            forward = None
        owners.extend([forward] * len(token.suffix))

    if not 0 < offset <= len(owners):
        return None
    return owners[offset - 1]


__all__ = (
    "Part",
    "Trace",
    "trace",
    "status_markup",
    "assignment_at",
)
