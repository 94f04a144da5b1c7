import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from simcheck.models import ASSIGNMENTS_DIRNAME


def write_tree(root, students):
    """Create root/<student>/20-assignments/<assignment>/<file> from nested dicts.

    A student mapped to None gets a bare folder without assignments.
    """
    for student, assignments in students.items():
        student_dir = root / student
        student_dir.mkdir(parents=True, exist_ok=True)
        for assignment, files in (assignments or {}).items():
            assignment_dir = student_dir / ASSIGNMENTS_DIRNAME / assignment
            assignment_dir.mkdir(parents=True, exist_ok=True)
            for name, content in files.items():
                path = assignment_dir / name
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def classroom(tmp_path):
    """Factory building a classroom tree under tmp_path."""
    def build(students, starter=None):
        root = tmp_path / "classroom"
        root.mkdir(exist_ok=True)
        if starter:
            write_tree(root, {starter: {"A1": {"index.html": "starter\n"}}})
        return write_tree(root, students)
    return build
