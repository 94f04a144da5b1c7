# -*- coding: utf-8 -*-
from __future__ import annotations

import subprocess
import sys
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, TextIO

from .models import AssignmentDetail, StudentPairSummary
from .reporting import (
    BOLD,
    CYAN,
    GREEN,
    RED,
    DisplayName,
    paint,
    render,
    similarity_color,
)

BANNER = "=" * 80
PROMPT = "Enter case number (e.g., 1 or 1.2) to show diffs, 'p' to show summary again, or 'q' to quit: "
USAGE = "Invalid format. Use format like '1' for all assignments or '1.2' for specific assignment."
DIFF_COMMAND = ("diff", "-u")


class State(Enum):
    AWAITING_COMMAND = "awaiting_command"
    EXITING = "exiting"


class Action(Enum):
    QUIT = "quit"
    PRINT = "print"
    SHOW = "show"
    INVALID = "invalid"


@dataclass
class Command:
    action: Action
    case: Optional[int] = None
    assignment: Optional[int] = None


def parse_command(text: str) -> Command:
    """Parse one line of operator input. Range checks happen later."""
    text = text.strip()
    if text in ("q", "Q"):
        return Command(Action.QUIT)
    if text in ("p", "P", "print"):
        return Command(Action.PRINT)

    parts = text.split(".")
    if len(parts) > 2 or not all(p.isdecimal() for p in parts):
        return Command(Action.INVALID)
    case = int(parts[0])
    assignment = int(parts[1]) if len(parts) == 2 else None
    return Command(Action.SHOW, case, assignment)


def color_diff(diff_output: str, color: bool = True) -> str:
    """Annotate unified diff lines: headers bold, hunks cyan, removals red, additions green."""
    out: List[str] = []
    for line in diff_output.split("\n"):
        if line.startswith(("---", "+++")):
            out.append(paint(line, BOLD, color))
        elif line.startswith("@@"):
            out.append(paint(line, CYAN, color))
        elif line.startswith("-"):
            out.append(paint(line, RED, color))
        elif line.startswith("+"):
            out.append(paint(line, GREEN, color))
        else:
            out.append(line)
    return "\n".join(out)


def run_diff(file_a: str, file_b: str, command: Sequence[str] = DIFF_COMMAND) -> subprocess.CompletedProcess:
    return subprocess.run(
        [*command, file_a, file_b],
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        errors="replace",
    )


class DiffExplorer:
    """Read-eval loop that shows unified diffs for flagged cases."""

    def __init__(
        self,
        pairs: Sequence[StudentPairSummary],
        threshold: float,
        order_by: str,
        display: Optional[DisplayName] = None,
        color: bool = True,
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None,
        diff_command: Sequence[str] = DIFF_COMMAND,
    ):
        self.pairs = list(pairs)
        self.threshold = threshold
        self.order_by = order_by
        self.display = display or (lambda s: s)
        self.color = color
        self.stdin = stdin if stdin is not None else sys.stdin
        self.stdout = stdout if stdout is not None else sys.stdout
        self.diff_command = tuple(diff_command)
        self.state = State.AWAITING_COMMAND

    def _print(self, text: str = "") -> None:
        print(text, file=self.stdout)

    # ----- rendering -----

    def show_summary(self) -> None:
        self._print(f"\n{BANNER}")
        # Only assignments that are actually flagged are listed again
        self._print(render(self.pairs, self.threshold, self.order_by, None, self.display, self.color))
        self._print(BANNER)

    def show_file_diff(self, file_a: str, file_b: str, sim: float) -> None:
        self._print()
        self._print(paint(f"--- {file_a}\n+++ {file_b}\n({sim:.1f}% similar)",
                          similarity_color(sim, self.threshold), self.color))
        try:
            proc = run_diff(file_a, file_b, self.diff_command)
        except OSError as e:
            self._print(paint(f"Error running diff: {e}", RED, self.color))
            return

        if proc.returncode == 0:
            self._print("Files are identical")
        elif proc.returncode == 1 and proc.stdout:
            self._print(color_diff(proc.stdout, self.color))
        else:
            detail = (proc.stderr or proc.stdout).strip() or f"exit status {proc.returncode}"
            self._print(paint(f"Error running diff: {detail}", RED, self.color))

    def show_assignment(self, case_num: int, assignment_num: int) -> None:
        detail: AssignmentDetail = self.pairs[case_num - 1].assignments[assignment_num - 1]
        self._print()
        self._print(paint(f"Case {case_num}.{assignment_num} - Assignment: {detail.name} ({detail.max_similarity:.1f}%)",
                          similarity_color(detail.max_similarity, self.threshold), self.color))
        for fc in detail.comparisons:
            self.show_file_diff(fc.file_a, fc.file_b, fc.similarity)
        self._print(f"\n{BANNER}")

    def show_case(self, case_num: int) -> None:
        pair = self.pairs[case_num - 1]
        self._print(f"\n{BANNER}")
        self._print(f"Case {case_num}: {self.display(pair.student_a)} | {self.display(pair.student_b)}")
        self._print(BANNER)
        for assignment_num in range(1, len(pair.assignments) + 1):
            self.show_assignment(case_num, assignment_num)

    # ----- state machine -----

    def handle(self, text: str) -> State:
        """Apply one command and return the resulting state."""
        cmd = parse_command(text)
        if cmd.action is Action.QUIT:
            self._print("Exiting diff mode.")
            self.state = State.EXITING
        elif cmd.action is Action.PRINT:
            self.show_summary()
        elif cmd.action is Action.INVALID:
            self._print(USAGE)
        elif not 1 <= cmd.case <= len(self.pairs):
            self._print(f"Invalid case number. Please enter a number between 1 and {len(self.pairs)}.")
        elif cmd.assignment is None:
            self.show_case(cmd.case)
        else:
            flagged = len(self.pairs[cmd.case - 1].assignments)
            if not 1 <= cmd.assignment <= flagged:
                self._print(f"Invalid assignment number. Case {cmd.case} has {flagged} assignment(s).")
            else:
                self.show_assignment(cmd.case, cmd.assignment)
        return self.state

    def run(self) -> None:
        while self.state is State.AWAITING_COMMAND:
            self._print(f"\n{BANNER}")
            self.stdout.write(PROMPT)
            self.stdout.flush()
            line = self.stdin.readline()
            if not line:
                # End of input
                self._print()
                self.state = State.EXITING
                break
            self.handle(line)
