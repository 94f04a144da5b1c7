# -*- coding: utf-8 -*-
from __future__ import annotations

import logging
import os
from typing import Iterable, List, Optional

from .models import ASSIGNMENTS_DIRNAME, ConfigurationError, Roster

logger = logging.getLogger(__name__)


def normalize_extensions(values: Iterable[str]) -> List[str]:
    """Split comma separated values and make sure each extension starts with a dot."""
    out: List[str] = []
    for value in values:
        for ext in value.split(","):
            ext = ext.strip()
            if not ext:
                continue
            if not ext.startswith("."):
                ext = "." + ext
            if ext not in out:
                out.append(ext)
    return out


def split_names(values: Iterable[str]) -> List[str]:
    out: List[str] = []
    for value in values:
        out.extend(n.strip() for n in value.split(",") if n.strip())
    return out


def find_student_folders(root: str, starter_folder: Optional[str]) -> List[str]:
    """Immediate, non-hidden subdirectories of root, minus the starter folder."""
    try:
        entries = sorted(os.listdir(root))
    except OSError as e:
        raise ConfigurationError(f"failed to read classroom directory {root}: {e}")

    students: List[str] = []
    for name in entries:
        if name.startswith("."):
            continue
        if starter_folder and name == starter_folder:
            continue
        if os.path.isdir(os.path.join(root, name)):
            students.append(name)
    return students


def find_assignments(student_path: str, assignments_dirname: str = ASSIGNMENTS_DIRNAME) -> List[str]:
    """Assignment folder names of one student; empty when the student has none.

    Raises OSError when the assignments folder exists but cannot be listed.
    """
    assignments_path = os.path.join(student_path, assignments_dirname)
    if not os.path.isdir(assignments_path):
        return []
    return sorted(
        name for name in os.listdir(assignments_path)
        if not name.startswith(".") and os.path.isdir(os.path.join(assignments_path, name))
    )


def _raise(err: OSError) -> None:
    raise err


def _matches(filename: str, extensions: List[str], ignore: Iterable[str]) -> bool:
    for ext in extensions:
        if filename.endswith(ext):
            return filename[: -len(ext)] not in ignore
    return False


def find_files(assignment_path: str, extensions: List[str], ignore: Iterable[str] = (),
               skipped: Optional[List[str]] = None) -> List[str]:
    """Collect non-empty files under assignment_path matching one of the extensions.

    Files that cannot be stat'ed are left out and, when given, appended to
    ``skipped``. Raises OSError when any part of the subtree cannot be walked.
    """
    ignore = set(ignore)
    files: List[str] = []
    for root, dirs, names in os.walk(assignment_path, onerror=_raise):
        dirs.sort()
        for fn in sorted(names):
            if not _matches(fn, extensions, ignore):
                continue
            full = os.path.join(root, fn)
            try:
                if os.path.getsize(full) == 0:
                    continue
            except OSError as e:
                logger.warning("Skipping unreadable file %s: %s", full, e)
                if skipped is not None:
                    skipped.append(full)
                continue
            files.append(os.path.abspath(full))
    return files


def build_roster(
    root: str,
    starter_folder: Optional[str],
    extensions: List[str],
    ignore: Iterable[str] = (),
    assignments_dirname: str = ASSIGNMENTS_DIRNAME,
) -> Roster:
    """Discover students, the union of their assignments and every candidate file.

    Raises ConfigurationError when the root is unreadable or fewer than two
    student folders exist.
    """
    students = find_student_folders(root, starter_folder)
    if len(students) < 2:
        raise ConfigurationError(
            f"need at least 2 student folders to compare, found {len(students)} under {root}"
        )

    ignore = set(ignore)
    roster = Roster(students=[], assignments=[])
    per_student = {}
    for student in students:
        try:
            per_student[student] = find_assignments(os.path.join(root, student), assignments_dirname)
        except OSError as e:
            logger.warning("Failed to get assignments for %s: %s", student, e)
            roster.warnings += 1
            continue
        roster.students.append(student)

    roster.assignments = sorted({a for names in per_student.values() for a in names})
    if roster.assignments:
        logger.info("Analyzing assignments: %s", ", ".join(roster.assignments))

    for student, assignments in per_student.items():
        for assignment in assignments:
            path = os.path.join(root, student, assignments_dirname, assignment)
            skipped: List[str] = []
            try:
                files = find_files(path, extensions, ignore, skipped)
            except OSError as e:
                logger.warning("Failed to find files for %s/%s: %s", student, assignment, e)
                roster.warnings += 1
                continue
            roster.warnings += len(skipped)
            if files:
                roster.files[(student, assignment)] = files
    return roster
