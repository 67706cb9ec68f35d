"""Operator input: yes/no confirmations and numbered selections."""
from __future__ import annotations

import sys
from typing import Sequence

from .errors import SelectionError
from .executil import trace

YES = ("y", "yes")
NO = ("n", "no")


class Operator:
    """Blocking prompts on a line-oriented stream.

    Prompts and menus are written to ``stream`` (stderr by default) so that
    stdout stays free for results.  ``assume_yes`` answers every
    confirmation with yes without reading input; selections are still read.
    """

    def __init__(self, stdin=None, stream=None, assume_yes: bool = False):
        self.stdin = stdin or sys.stdin
        self.stream = stream or sys.stderr
        self.assume_yes = assume_yes

    def _ask(self, prompt: str) -> str:
        self.stream.write(prompt)
        self.stream.flush()
        line = self.stdin.readline()
        if not line.endswith("\n"):
            self.stream.write("\n")
        return line.strip()

    def confirm(self, question: str, default: bool = False) -> bool:
        hint = "(Y/n)" if default else "(y/N)"
        if self.assume_yes:
            self.stream.write(f"{question} {hint}: y\n")
            trace("prompt.confirm", question=question, answer=True, assumed=True)
            return True
        reply = self._ask(f"{question} {hint}: ").lower()
        if reply in YES:
            answer = True
        elif reply in NO:
            answer = False
        else:
            answer = default
        trace("prompt.confirm", question=question, reply=reply, answer=answer)
        return answer

    def choose(self, title: str, options: Sequence[str]) -> int:
        """Show ``options`` as a 1-based list and return the 0-based pick.

        Anything other than an integer in ``1..len(options)`` raises
        :class:`SelectionError`; there is no second attempt.
        """

        if not options:
            raise SelectionError("nothing to select from")
        self.stream.write(f"{title}\n")
        for idx, option in enumerate(options, start=1):
            self.stream.write(f"{idx}. {option}\n")
        self.stream.write("\n")
        reply = self._ask(f"Select device number (1-{len(options)}): ")
        trace("prompt.choose", options=list(options), reply=reply)
        if not (reply.isascii() and reply.isdigit()):
            raise SelectionError(f"Invalid selection: {reply!r}")
        index = int(reply)
        if index < 1 or index > len(options):
            raise SelectionError(f"Invalid selection: {reply!r}")
        return index - 1
