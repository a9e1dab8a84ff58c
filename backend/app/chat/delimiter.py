"""Parsing of the ``[DOCUMENTS:...]`` block in assistant replies.

Grammar (first match only)::

    block := "[DOCUMENTS:" token ("," token)* "]"
    token := any characters except "]" and ","   (whitespace trimmed)

Parsed IDs are untrusted: callers must intersect them with the documents
they actually sent to the model.
"""

import re
from dataclasses import dataclass, field

DOCUMENTS_BLOCK = re.compile(r"\[DOCUMENTS:(.*?)\]")


@dataclass(frozen=True)
class ParsedReply:
    """Assistant reply split into visible text and referenced IDs."""

    message: str
    document_ids: list[str] = field(default_factory=list)
    has_block: bool = False


def extract_document_ids(text: str) -> list[str] | None:
    """Return the IDs in the first block, or None when there is no block."""
    match = DOCUMENTS_BLOCK.search(text)
    if match is None:
        return None
    return [token.strip() for token in match.group(1).split(",") if token.strip()]


def strip_documents_block(text: str) -> str:
    """Remove the first block and trim surrounding whitespace."""
    return DOCUMENTS_BLOCK.sub("", text, count=1).strip()


def parse_reply(text: str) -> ParsedReply:
    """Split an assistant reply into visible message and document IDs.

    Without a block the message is the reply exactly as received.
    """
    ids = extract_document_ids(text)
    if ids is None:
        return ParsedReply(message=text)
    return ParsedReply(message=strip_documents_block(text), document_ids=ids, has_block=True)
