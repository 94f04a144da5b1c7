# -*- coding: utf-8 -*-
from __future__ import annotations

import json
import os
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .models import (
    ORDER_BY_ASSIGNMENT,
    ORDER_BY_STUDENT,
    AssignmentCase,
    AssignmentDetail,
    ComparisonMatrix,
    Config,
    ConfigurationError,
    FileComparisonDetail,
    StudentPairSummary,
)

NAME_WIDTH = 37
RULE = "-" * 80

BOLD = "\033[1m"
RED = "\033[0;31m"
GREEN = "\033[0;32m"
CYAN = "\033[0;36m"
BRIGHT_RED = "\033[1;31m"
YELLOW = "\033[1;33m"
MAGENTA = "\033[1;35m"
RESET = "\033[0m"

DisplayName = Callable[[str], str]


def _identity(student: str) -> str:
    return student


# -------- Aggregation --------

def summarize(
    matrix: ComparisonMatrix,
    threshold: float,
    filter_student: Optional[str] = None,
    filter_assignment: Optional[str] = None,
) -> List[StudentPairSummary]:
    """Flagged student pairs, most flagged assignments first, then highest similarity."""
    students = sorted(matrix.students)
    pairs: List[StudentPairSummary] = []

    for i, student_a in enumerate(students):
        for student_b in students[i + 1:]:
            pair = StudentPairSummary(student_a, student_b)
            for assignment in matrix.assignments:
                if filter_assignment and assignment != filter_assignment:
                    continue
                comp = matrix.get(student_a, student_b, assignment)
                if comp is None or comp.max_similarity < threshold:
                    continue
                details = [
                    FileComparisonDetail(fc.file_a, fc.file_b, fc.similarity)
                    for fc in comp.comparisons
                    if fc.similarity >= threshold
                ]
                if not details:
                    continue
                pair.assignments.append(AssignmentDetail(assignment, comp.max_similarity, details))
                pair.max_similarity = max(pair.max_similarity, comp.max_similarity)

            if not pair.assignments:
                continue
            if filter_student and not pair.involves(filter_student):
                continue
            pairs.append(pair)

    pairs.sort(key=lambda p: (len(p.assignments), p.max_similarity), reverse=True)
    return pairs


def group_by_assignment(pairs: Sequence[StudentPairSummary],
                        assignments: Optional[Sequence[str]] = None) -> List[Tuple[str, List[AssignmentCase]]]:
    """Regroup flagged pairs under their assignment, highest similarity first.

    Case numbers refer back to the pair's position in ``pairs`` (1-based).
    """
    by_name: Dict[str, List[AssignmentCase]] = {}
    for case_num, pair in enumerate(pairs, start=1):
        for assignment_num, detail in enumerate(pair.assignments, start=1):
            by_name.setdefault(detail.name, []).append(AssignmentCase(case_num, assignment_num, pair, detail))

    if assignments is None:
        assignments = sorted(by_name)

    groups: List[Tuple[str, List[AssignmentCase]]] = []
    for name in assignments:
        cases = by_name.get(name)
        if not cases:
            continue
        cases.sort(key=lambda c: c.detail.max_similarity, reverse=True)
        groups.append((name, cases))
    return groups


# -------- Console rendering --------

def truncate(s: str, max_len: int = NAME_WIDTH) -> str:
    if len(s) <= max_len:
        return s
    return s[: max_len - 3] + "..."


def similarity_color(sim: float, threshold: float) -> str:
    if sim >= 90:
        return BRIGHT_RED
    if sim >= threshold:
        return YELLOW
    return GREEN


def paint(text: str, code: str, color: bool) -> str:
    return f"{code}{text}{RESET}" if color else text


def _file_line(fc: FileComparisonDetail, threshold: float, color: bool) -> str:
    text = (f"   {os.path.basename(fc.file_a):<{NAME_WIDTH}}{os.path.basename(fc.file_b):<{NAME_WIDTH}}"
            f"({fc.similarity:.1f}%)")
    return paint(text, similarity_color(fc.similarity, threshold), color)


def _pair_line(ref: str, pair: StudentPairSummary, display: DisplayName, color: bool) -> str:
    text = f"{ref:<3}{truncate(display(pair.student_a)):<{NAME_WIDTH}}{truncate(display(pair.student_b)):<{NAME_WIDTH}}"
    return paint(text, CYAN, color)


def render_by_student(pairs: Sequence[StudentPairSummary], threshold: float,
                      display: DisplayName = _identity, color: bool = True) -> str:
    lines = ["Student pairs with high similarity:", RULE]
    for i, pair in enumerate(pairs, start=1):
        lines.append(_pair_line(str(i), pair, display, color))
        for j, detail in enumerate(pair.assignments, start=1):
            lines.append("")
            lines.append(paint(f"{i}.{j} {detail.name}: {detail.max_similarity:.1f}%",
                               similarity_color(detail.max_similarity, threshold), color))
            lines.extend(_file_line(fc, threshold, color) for fc in detail.comparisons)
        lines.append("")
    return "\n".join(lines)


def render_by_assignment(pairs: Sequence[StudentPairSummary], threshold: float,
                         assignments: Optional[Sequence[str]] = None,
                         display: DisplayName = _identity, color: bool = True) -> str:
    lines = ["Similarity results by assignment:", RULE]
    for name, cases in group_by_assignment(pairs, assignments):
        lines.append("")
        lines.append(paint(name, MAGENTA, color))
        for case in cases:
            lines.append(_pair_line(case.reference, case.pair, display, color))
            lines.extend(_file_line(fc, threshold, color) for fc in case.detail.comparisons)
            lines.append("")
    return "\n".join(lines)


def render(pairs: Sequence[StudentPairSummary], threshold: float, order_by: str,
           assignments: Optional[Sequence[str]] = None,
           display: DisplayName = _identity, color: bool = True) -> str:
    if order_by == ORDER_BY_ASSIGNMENT:
        return render_by_assignment(pairs, threshold, assignments, display, color)
    if order_by == ORDER_BY_STUDENT:
        return render_by_student(pairs, threshold, display, color)
    raise ConfigurationError(f"invalid order-by value: {order_by}")


def render_header(cfg: Config, title: str, assignments: Sequence[str]) -> str:
    lines = [
        f"Checking classroom: {title}",
        f"File extensions: {', '.join(cfg.extensions)}",
        f"Threshold: {cfg.threshold:.0f}%",
    ]
    if cfg.ignore:
        lines.append(f"Ignoring files: {', '.join(cfg.ignore)}")
    if cfg.filter_student:
        lines.append(f"Filtered by student: {cfg.filter_student}")
    if cfg.filter_assignment:
        lines.append(f"Filtered by assignment: {cfg.filter_assignment}")
    lines.append("")
    lines.append("Assignments analyzed:")
    lines.extend(f"  - {a}" for a in assignments)
    lines.append("")
    return "\n".join(lines)


def render_empty(cfg: Config) -> str:
    lines = []
    if cfg.filter_student:
        lines.append(f"No similarities found for student: {cfg.filter_student}")
    if cfg.filter_assignment:
        lines.append(f"No similarities found for assignment: {cfg.filter_assignment}")
    if not lines:
        lines.append(f"No similarities at or above {cfg.threshold:.0f}% found.")
    return "\n".join(lines)


# -------- JSON report --------

def build_report(cfg: Config, matrix: ComparisonMatrix, pairs: Sequence[StudentPairSummary],
                 display: DisplayName = _identity) -> dict:
    return {
        "root": os.path.abspath(cfg.root),
        "extensions": list(cfg.extensions),
        "threshold": cfg.threshold,
        "ignore": list(cfg.ignore),
        "filters": {
            "student": cfg.filter_student,
            "assignment": cfg.filter_assignment,
        },
        "students": list(matrix.students),
        "assignments": list(matrix.assignments),
        "warnings": matrix.warnings,
        "pairs": [
            {
                "case": i,
                "student_a": p.student_a,
                "student_b": p.student_b,
                "name_a": display(p.student_a),
                "name_b": display(p.student_b),
                "max_similarity": round(p.max_similarity, 3),
                "assignments": [
                    {
                        "name": d.name,
                        "max_similarity": round(d.max_similarity, 3),
                        "files": [
                            {"file_a": fc.file_a, "file_b": fc.file_b, "similarity": round(fc.similarity, 3)}
                            for fc in d.comparisons
                        ],
                    }
                    for d in p.assignments
                ],
            }
            for i, p in enumerate(pairs, start=1)
        ],
    }


def write_report(report_path: str, payload: dict) -> None:
    parent = os.path.dirname(report_path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(report_path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)
