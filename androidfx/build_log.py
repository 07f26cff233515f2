import queue


class BuildLog:
    """Append-only log shown to the user while a project is generated.

    ``append`` may be called from any thread. Lines only become part of the
    log when the consumer (the event loop serving the log stream) calls
    ``drain``, so delivery happens on a single context.
    """

    def __init__(self, echo: bool = False):
        self._pending = queue.Queue()
        self._lines = []
        self.echo = echo

    def append(self, line: str) -> None:
        if self.echo:
            print(f"[GENERATOR] {line}")
        self._pending.put_nowait(line)

    def drain(self) -> list[str]:
        new_lines = []
        while True:
            try:
                new_lines.append(self._pending.get_nowait())
            except queue.Empty:
                break
        self._lines.extend(new_lines)
        return new_lines

    @property
    def lines(self) -> list[str]:
        return list(self._lines)

    @property
    def text(self) -> str:
        return "".join(line + "\n" for line in self._lines)
