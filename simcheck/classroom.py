# -*- coding: utf-8 -*-
"""Optional classroom metadata: report title, starter folder and display names.

Nothing here is required for a run. Missing or malformed files only log a
warning and the raw folder names are shown instead.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

MMC_FOLDER = ".mmc"
CLASSROOM_FILE = "classroom.json"


@dataclass
class Classroom:
    name: Optional[str] = None
    names: Dict[str, str] = field(default_factory=dict)


def repo_name(email: str) -> str:
    """Student folder name derived from an email: 'first.last@x' -> 'last.first'."""
    local = email.split("@")[0]
    parts = local.split(".")
    if len(parts) == 2:
        return parts[1] + "." + parts[0]
    return local


def find_classroom_file(start: str) -> Optional[str]:
    """Walk up from start looking for .mmc/classroom.json."""
    current = os.path.abspath(start)
    while True:
        candidate = os.path.join(current, MMC_FOLDER, CLASSROOM_FILE)
        if os.path.isfile(candidate):
            return candidate
        parent = os.path.dirname(current)
        if parent == current:
            return None
        current = parent


def parse_classroom(data: object) -> Classroom:
    """Accept either classroom.json ({"Classroom": ..., "Students": [...]}) or a flat {id: name} map."""
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object")

    if "Students" not in data and "Classroom" not in data:
        return Classroom(names={str(k): str(v) for k, v in data.items() if v})

    room = Classroom()
    info = data.get("Classroom") or {}
    if isinstance(info, dict) and info.get("Name"):
        room.name = str(info["Name"])
    for student in data.get("Students") or []:
        if not isinstance(student, dict) or not student.get("Name"):
            continue
        name = str(student["Name"])
        if student.get("Email"):
            room.names[repo_name(str(student["Email"]))] = name
        if student.get("GithubUser"):
            room.names[str(student["GithubUser"])] = name
    return room


def load_classroom(path: Optional[str]) -> Classroom:
    if not path:
        return Classroom()
    try:
        with open(path, "r", encoding="utf-8") as f:
            return parse_classroom(json.load(f))
    except (OSError, ValueError) as e:
        logger.warning("Ignoring classroom metadata %s: %s", path, e)
        return Classroom()


def display_names(names: Dict[str, str]) -> Callable[[str], str]:
    def lookup(student: str) -> str:
        return names.get(student) or student
    return lookup
