# -*- coding: utf-8 -*-
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

ORDER_BY_ASSIGNMENT = "assignment"
ORDER_BY_STUDENT = "student"
ORDER_BY_CHOICES = (ORDER_BY_ASSIGNMENT, ORDER_BY_STUDENT)

# Conventional per-student folder holding one subfolder per assignment
ASSIGNMENTS_DIRNAME = "20-assignments"


class ConfigurationError(RuntimeError):
    """Fatal problem detected before any scoring starts."""


def _env_extensions() -> List[str]:
    raw = os.environ.get("SIMCHECK_EXTENSIONS", ".html")
    return [e for e in raw.split(",") if e.strip()]


def _env_threshold() -> float:
    raw = os.environ.get("SIMCHECK_THRESHOLD", "70")
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"SIMCHECK_THRESHOLD must be a number, got {raw!r}")


def _env_workers() -> int:
    raw = os.environ.get("SIMCHECK_WORKERS")
    if raw and raw.strip().isdigit():
        return int(raw)
    return os.cpu_count() or 1


@dataclass
class Config:
    """CLI/runtime configuration for one comparison run."""

    root: str = "."
    extensions: List[str] = field(default_factory=_env_extensions)
    threshold: float = field(default_factory=_env_threshold)
    starter_folder: Optional[str] = None
    ignore: List[str] = field(default_factory=list)
    assignments_dirname: str = ASSIGNMENTS_DIRNAME

    # Reporting
    order_by: str = ORDER_BY_ASSIGNMENT
    filter_student: Optional[str] = None
    filter_assignment: Optional[str] = None
    report_path: Optional[str] = None
    names_path: Optional[str] = None
    color: bool = not os.environ.get("NO_COLOR")

    # Interaction / diagnostics
    show_diff: bool = False
    verbose: bool = False
    workers: int = field(default_factory=_env_workers)
    # Score in worker processes instead of threads
    processes: bool = False

    def validate(self) -> None:
        if not 0.0 <= self.threshold <= 100.0:
            raise ConfigurationError(f"threshold must be between 0 and 100, got {self.threshold}")
        if self.order_by not in ORDER_BY_CHOICES:
            raise ConfigurationError(
                f"invalid order-by value: {self.order_by}. Must be '{ORDER_BY_STUDENT}' or '{ORDER_BY_ASSIGNMENT}'"
            )
        if not self.extensions:
            raise ConfigurationError("at least one file extension is required")
        if self.workers < 1:
            raise ConfigurationError(f"workers must be at least 1, got {self.workers}")


@dataclass(frozen=True)
class SourceFile:
    path: str
    student: str
    assignment: str


@dataclass(frozen=True)
class FileComparison:
    file_a: str
    file_b: str
    similarity: float

    def swapped(self) -> "FileComparison":
        return FileComparison(self.file_b, self.file_a, self.similarity)


@dataclass
class AssignmentComparison:
    """All scored file pairs of one (student, student, assignment) cell.

    ``comparisons`` is kept sorted by similarity, highest first, so the first
    entry is the representative worst case.
    """

    assignment: str
    comparisons: List[FileComparison]
    max_similarity: float

    def mirrored(self) -> "AssignmentComparison":
        return AssignmentComparison(
            assignment=self.assignment,
            comparisons=[c.swapped() for c in self.comparisons],
            max_similarity=self.max_similarity,
        )


@dataclass
class Roster:
    students: List[str]
    assignments: List[str]
    # (student, assignment) -> candidate files; absent when not comparable
    files: Dict[Tuple[str, str], List[str]] = field(default_factory=dict)
    warnings: int = 0

    def files_for(self, student: str, assignment: str) -> List[str]:
        return self.files.get((student, assignment), [])


@dataclass
class ComparisonMatrix:
    """student -> student -> assignment -> AssignmentComparison.

    Both directions of every unordered pair are stored; the diagonal never is.
    """

    students: List[str]
    assignments: List[str]
    results: Dict[str, Dict[str, Dict[str, AssignmentComparison]]] = field(default_factory=dict)
    warnings: int = 0

    def store(self, student_a: str, student_b: str, cell: AssignmentComparison) -> None:
        if student_a == student_b:
            raise ValueError(f"refusing to store a self comparison for {student_a}")
        self.results.setdefault(student_a, {}).setdefault(student_b, {})[cell.assignment] = cell
        self.results.setdefault(student_b, {}).setdefault(student_a, {})[cell.assignment] = cell.mirrored()

    def get(self, student_a: str, student_b: str, assignment: str) -> Optional[AssignmentComparison]:
        return self.results.get(student_a, {}).get(student_b, {}).get(assignment)

    def cell_count(self) -> int:
        return sum(len(by_assignment) for peers in self.results.values() for by_assignment in peers.values())


@dataclass
class FileComparisonDetail:
    file_a: str
    file_b: str
    similarity: float


@dataclass
class AssignmentDetail:
    name: str
    max_similarity: float
    comparisons: List[FileComparisonDetail]


@dataclass
class StudentPairSummary:
    student_a: str
    student_b: str
    assignments: List[AssignmentDetail] = field(default_factory=list)
    max_similarity: float = 0.0

    def involves(self, student: str) -> bool:
        return student in (self.student_a, self.student_b)


@dataclass
class AssignmentCase:
    """One flagged pair listed under an assignment heading."""

    case_num: int
    assignment_num: int
    pair: StudentPairSummary
    detail: AssignmentDetail

    @property
    def reference(self) -> str:
        return f"{self.case_num}.{self.assignment_num}"
