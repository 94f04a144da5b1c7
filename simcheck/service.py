# -*- coding: utf-8 -*-
from __future__ import annotations

import concurrent.futures
import logging
import sys
from typing import List, Optional, Tuple

from tqdm import tqdm

from .models import AssignmentComparison, ComparisonMatrix, Config, FileComparison, Roster
from .scanner import build_roster
from .scoring import NormalizedCache, file_similarity

logger = logging.getLogger(__name__)

# (student_a, student_b, assignment)
Cell = Tuple[str, str, str]


def compare_file_lists(files_a: List[str], files_b: List[str], assignment: str,
                       cache: Optional[NormalizedCache] = None) -> Tuple[Optional[AssignmentComparison], int]:
    """Score the full cross product of two file lists.

    Returns the cell (None when nothing could be scored) and the number of
    file pairs skipped because a file could not be read.
    """
    comparisons: List[FileComparison] = []
    skipped = 0
    for file_a in files_a:
        for file_b in files_b:
            try:
                sim = file_similarity(file_a, file_b, cache)
            except OSError as e:
                logger.warning("Failed to compare %s and %s: %s", file_a, file_b, e)
                skipped += 1
                continue
            comparisons.append(FileComparison(file_a, file_b, sim))

    if not comparisons:
        return None, skipped

    # Stable sort keeps cross-product order among equal scores
    comparisons.sort(key=lambda c: c.similarity, reverse=True)
    return AssignmentComparison(
        assignment=assignment,
        comparisons=comparisons,
        max_similarity=comparisons[0].similarity,
    ), skipped


# Each worker process keeps its own normalized-file cache
_process_cache: Optional[NormalizedCache] = None


def _init_worker(level: int) -> None:
    global _process_cache
    _process_cache = NormalizedCache()
    logging.getLogger().setLevel(level)


def _score_in_process(files_a: List[str], files_b: List[str],
                      assignment: str) -> Tuple[Optional[AssignmentComparison], int]:
    return compare_file_lists(files_a, files_b, assignment, _process_cache)


class ComparisonService:
    """Orchestrates scan → pairwise scoring → matrix assembly."""

    def __init__(self, cfg: Config):
        self.cfg = cfg
        self.cache = NormalizedCache()

    # ----- internals -----

    def _cells(self, roster: Roster) -> List[Cell]:
        cells: List[Cell] = []
        students = roster.students
        for assignment in roster.assignments:
            for i, student_a in enumerate(students):
                if not roster.files_for(student_a, assignment):
                    continue
                for student_b in students[i + 1:]:
                    if roster.files_for(student_b, assignment):
                        cells.append((student_a, student_b, assignment))
        return cells

    def _score_cell(self, roster: Roster, cell: Cell) -> Tuple[Optional[AssignmentComparison], int]:
        student_a, student_b, assignment = cell
        return compare_file_lists(
            roster.files_for(student_a, assignment),
            roster.files_for(student_b, assignment),
            assignment,
            self.cache,
        )

    def _executor(self) -> concurrent.futures.Executor:
        if self.cfg.processes:
            return concurrent.futures.ProcessPoolExecutor(
                max_workers=self.cfg.workers,
                initializer=_init_worker,
                initargs=(logging.getLogger().getEffectiveLevel(),),
            )
        return concurrent.futures.ThreadPoolExecutor(max_workers=self.cfg.workers)

    def _submit(self, executor: concurrent.futures.Executor, roster: Roster,
                cell: Cell) -> concurrent.futures.Future:
        if self.cfg.processes:
            student_a, student_b, assignment = cell
            return executor.submit(
                _score_in_process,
                roster.files_for(student_a, assignment),
                roster.files_for(student_b, assignment),
                assignment,
            )
        return executor.submit(self._score_cell, roster, cell)

    def _progress_enabled(self) -> bool:
        return not self.cfg.verbose and sys.stderr.isatty()

    # ----- public -----

    def scan(self) -> Roster:
        return build_roster(
            self.cfg.root,
            self.cfg.starter_folder,
            self.cfg.extensions,
            self.cfg.ignore,
            self.cfg.assignments_dirname,
        )

    def build_matrix(self, roster: Roster) -> ComparisonMatrix:
        matrix = ComparisonMatrix(students=list(roster.students), assignments=list(roster.assignments),
                                  warnings=roster.warnings)
        cells = self._cells(roster)
        logger.info("Scoring %d student-pair/assignment cells with %d %s", len(cells), self.cfg.workers,
                    "processes" if self.cfg.processes else "threads")

        with self._executor() as executor:
            futures = {self._submit(executor, roster, cell): cell for cell in cells}
            done = concurrent.futures.as_completed(futures)
            if self._progress_enabled():
                done = tqdm(done, total=len(futures), desc="Comparing", unit="cell", leave=False)
            # Only this loop writes to the matrix
            for future in done:
                student_a, student_b, _ = futures[future]
                result, skipped = future.result()
                matrix.warnings += skipped
                if result is not None:
                    matrix.store(student_a, student_b, result)

        if self.cfg.processes:
            logger.info("Stored %d cells", matrix.cell_count() // 2)
        else:
            logger.info("Stored %d cells, %d files normalized", matrix.cell_count() // 2, len(self.cache))
        return matrix

    def run(self) -> ComparisonMatrix:
        return self.build_matrix(self.scan())
