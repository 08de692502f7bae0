"""Incremental line decoding for binary object streams.

This module turns a readable byte stream into text lines without
buffering the whole object. Any of ``\\n``, ``\\r`` or ``\\r\\n`` ends a line.
"""

from __future__ import annotations

import codecs
import re
from typing import Any, Iterator

from core.constants import STREAM_CHUNK_SIZE
from core.errors import IntakeIngestError

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def iter_stream_lines(stream: Any, chunk_size: int = STREAM_CHUNK_SIZE) -> Iterator[str]:
    """Yield decoded text lines from a binary stream.

    Args:
        stream: Object exposing ``read(size)`` that returns bytes.
        chunk_size: Number of bytes requested per read.

    Yields:
        Lines without their line terminators.

    Raises:
        IntakeIngestError: If reading from the stream fails.
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    assembler = _LineAssembler()
    for chunk in _iter_chunks(stream, chunk_size):
        yield from assembler.feed(decoder.decode(chunk))
    yield from assembler.feed(decoder.decode(b"", final=True), final=True)
    remainder = assembler.remainder()
    if remainder:
        yield remainder


def _iter_chunks(stream: Any, chunk_size: int) -> Iterator[bytes]:
    """Read raw chunks until the stream is exhausted."""
    while True:
        try:
            chunk = stream.read(chunk_size)
        except Exception as error:
            raise IntakeIngestError(
                f"Failed to read source stream: {error}. "
                "Check object store connectivity and retry the job."
            ) from error
        if not chunk:
            return
        yield chunk


class _LineAssembler:
    """Join decoded text pieces into lines, scanning each piece once.

    The unterminated tail is kept as a list of parts. A trailing ``\\r``
    is held back until more input arrives, since the next piece may start
    with the ``\\n`` of a ``\\r\\n`` pair.
    """

    def __init__(self) -> None:
        self._parts: list[str] = []
        self._held_cr = False

    def feed(self, text: str, final: bool = False) -> Iterator[str]:
        if self._held_cr:
            text = "\r" + text
            self._held_cr = False
        if not final and text.endswith("\r"):
            text = text[:-1]
            self._held_cr = True
        if not text:
            return
        pieces = _LINE_BREAK.split(text)
        if len(pieces) == 1:
            self._parts.append(text)
            return
        self._parts.append(pieces[0])
        yield "".join(self._parts)
        yield from pieces[1:-1]
        self._parts = [pieces[-1]]

    def remainder(self) -> str:
        return "".join(self._parts)
