from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional

class C:
    """ANSI color/style escape codes."""
    RESET = "\x1b[0m"
    BOLD  = "\x1b[1m"
    DIM   = "\x1b[2m"
    RED   = "\x1b[31m"
    YELLOW = "\x1b[33m"
    CYAN  = "\x1b[36m"

@dataclass(frozen=True)
class Diagnostic:
    kind: str
    code: str
    message: str
    library: Optional[str] = None  # id of the library the diagnostic is about, if any


class Reporter:
    def __init__(self, origin: str = "fortlink") -> None:
        self.origin = origin
        self.items: List[Diagnostic] = []

    def error(self, code: str, msg: str, library: Optional[str] = None):
        self.items.append(Diagnostic("error", code, msg, library))

    def warn(self, code: str, msg: str, library: Optional[str] = None):
        self.items.append(Diagnostic("warning", code, msg, library))

    def extend(self, diagnostics) -> None:
        self.items.extend(diagnostics)

    @property
    def has_errors(self) -> bool:
        return any(d.kind == "error" for d in self.items)

    @property
    def has_warnings(self) -> bool:
        return any(d.kind == "warning" for d in self.items)

    def format(self, use_color: bool = True) -> str:
        """Render all diagnostics, one per line."""
        out: List[str] = []

        for d in self.items:
            loc = f"{self.origin}[{d.library}]" if d.library else self.origin

            # Ensure message ends with period
            message = d.message if d.message.endswith('.') else f"{d.message}."

            if use_color:
                kind = f"{C.BOLD}{C.RED}error{C.RESET}" if d.kind == "error" else f"{C.BOLD}{C.YELLOW}warning{C.RESET}"
                out.append(f"{C.CYAN}{loc}{C.RESET}: {kind} [{C.DIM}{d.code}{C.RESET}]: {message}")
            else:
                out.append(f"{loc}: {d.kind} [{d.code}]: {message}")

        return "\n".join(out)

    def print(self, stream=None, use_color: Optional[bool] = None) -> None:
        """Print diagnostics to `stream` (default: sys.stderr).

        Color is auto-enabled for TTY unless NO_COLOR or TERM=dumb.
        """
        import os, sys
        stream = stream or sys.stderr

        if use_color is None:
            is_tty = getattr(stream, "isatty", lambda: False)()
            no_color = os.getenv("NO_COLOR") is not None
            dumb = os.getenv("TERM") == "dumb"
            use_color = bool(is_tty and not no_color and not dumb)

        text = self.format(use_color=use_color)
        if text:
            print(text, file=stream)
