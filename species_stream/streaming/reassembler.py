from __future__ import annotations


class LineReassembler:
    """Turn arbitrarily fragmented text chunks into complete logical lines.

    Chunk boundaries from the network have nothing to do with record
    boundaries, so a trailing piece without its newline is held back and
    prefixed to the next chunk instead of being handed to the parser.
    """

    def __init__(self) -> None:
        self._pending = ""

    @property
    def pending(self) -> str:
        return self._pending

    def feed(self, chunk: str) -> list[str]:
        if not chunk:
            return []

        buffer = self._pending + chunk
        lines = buffer.split("\n")
        if buffer.endswith("\n"):
            self._pending = ""
        else:
            self._pending = lines.pop()

        return [line for line in lines if line.strip()]

    def clear(self) -> None:
        self._pending = ""
