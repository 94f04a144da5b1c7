"""
Unit tests for simcheck/service.py

Matrix construction: pairing, symmetry, skip semantics and per-file failures.
"""
import os

import pytest

from simcheck.models import Config, ConfigurationError, ComparisonMatrix
from simcheck.service import ComparisonService, compare_file_lists


def make_config(root, **overrides):
    params = dict(root=str(root), extensions=[".txt"], threshold=50.0, workers=2)
    params.update(overrides)
    return Config(**params)


class TestCompareFileLists:
    """Tests for compare_file_lists function."""

    def test_cross_product_sorted_descending(self, tmp_path):
        a1 = tmp_path / "a1.txt"
        a2 = tmp_path / "a2.txt"
        b1 = tmp_path / "b1.txt"
        a1.write_text("x\ny\n", encoding="utf-8")
        a2.write_text("x\ny\nz\nw\n", encoding="utf-8")
        b1.write_text("x\ny\n", encoding="utf-8")

        cell, skipped = compare_file_lists([str(a2), str(a1)], [str(b1)], "A1")

        assert skipped == 0
        assert [c.similarity for c in cell.comparisons] == [100.0, 50.0]
        assert cell.comparisons[0].file_a == str(a1)
        assert cell.max_similarity == 100.0
        assert cell.assignment == "A1"

    def test_unreadable_pair_is_skipped(self, tmp_path):
        a = tmp_path / "a.txt"
        b = tmp_path / "b.txt"
        a.write_text("x\n", encoding="utf-8")
        b.write_text("x\n", encoding="utf-8")

        cell, skipped = compare_file_lists([str(a), str(tmp_path / "gone.txt")], [str(b)], "A1")

        assert skipped == 1
        assert len(cell.comparisons) == 1
        assert cell.max_similarity == 100.0

    def test_nothing_scored_returns_none(self, tmp_path):
        cell, skipped = compare_file_lists([str(tmp_path / "gone.txt")], [str(tmp_path / "also.txt")], "A1")
        assert cell is None
        assert skipped == 1


class TestComparisonService:
    """Tests for ComparisonService.run / build_matrix."""

    def test_identical_files_scenario(self, classroom):
        root = classroom({
            "X": {"A1": {"hello.txt": "hello world\n"}},
            "Y": {"A1": {"hello.txt": "hello world\n"}},
        })
        matrix = ComparisonService(make_config(root)).run()

        cell = matrix.get("X", "Y", "A1")
        assert cell.max_similarity == 100.0
        assert len(cell.comparisons) == 1
        assert matrix.get("X", "X", "A1") is None

    def test_matrix_is_symmetric(self, classroom):
        root = classroom({
            "X": {"A1": {"a.txt": "a\nb\nc\n", "b.txt": "q\n"}},
            "Y": {"A1": {"c.txt": "a\nx\ny\n"}},
            "Z": {"A1": {"d.txt": "a\nb\n"}},
        })
        matrix = ComparisonService(make_config(root)).run()

        for student_a, peers in matrix.results.items():
            assert student_a not in peers
            for student_b, by_assignment in peers.items():
                for assignment, cell in by_assignment.items():
                    mirror = matrix.get(student_b, student_a, assignment)
                    assert mirror is not None
                    assert mirror.max_similarity == cell.max_similarity
                    assert [(c.file_b, c.file_a, c.similarity) for c in mirror.comparisons] == \
                        [(c.file_a, c.file_b, c.similarity) for c in cell.comparisons]

        assert matrix.get("X", "Y", "A1").comparisons[0].similarity == pytest.approx(20.0)

    def test_missing_assignment_is_absent_not_zero(self, classroom):
        root = classroom({
            "X": {"A1": {"a.txt": "a\n"}, "A2": {"a.txt": "a\n"}},
            "Y": {"A1": {"b.txt": "b\n"}},
            "Z": None,
        })
        matrix = ComparisonService(make_config(root)).run()

        assert matrix.assignments == ["A1", "A2"]
        assert matrix.get("X", "Y", "A1").max_similarity == 0.0
        assert matrix.get("X", "Y", "A2") is None
        assert matrix.get("X", "Z", "A1") is None
        assert "Z" not in matrix.results

    def test_fewer_than_two_students_fails_before_scoring(self, classroom, monkeypatch):
        root = classroom({"X": {"A1": {"a.txt": "a\n"}}})
        import simcheck.service as service

        def boom(*args, **kwargs):
            raise AssertionError("scoring must not start")

        monkeypatch.setattr(service, "compare_file_lists", boom)
        with pytest.raises(ConfigurationError):
            ComparisonService(make_config(root)).run()

    def test_starter_folder_excluded(self, classroom):
        root = classroom({
            "X": {"A1": {"a.txt": "a\n"}},
            "Y": {"A1": {"a.txt": "a\n"}},
        }, starter="template")
        matrix = ComparisonService(make_config(root, starter_folder="template")).run()
        assert matrix.students == ["X", "Y"]

    def test_single_worker_matches_parallel(self, classroom):
        students = {
            f"s{i}": {"A1": {"a.txt": "\n".join(str(n) for n in range(i, i + 5))}}
            for i in range(5)
        }
        root = classroom(students)
        serial = ComparisonService(make_config(root, workers=1)).run()
        parallel = ComparisonService(make_config(root, workers=4)).run()
        assert serial.results == parallel.results
        assert serial.cell_count() == 5 * 4

    def test_process_pool_matches_threads(self, classroom):
        students = {
            f"s{i}": {"A1": {"a.txt": "\n".join(str(n) for n in range(i, i + 5))},
                      "A2": {"b.txt": "shared\n", "c.txt": f"only {i}\n"}}
            for i in range(4)
        }
        root = classroom(students)
        threaded = ComparisonService(make_config(root, workers=2)).run()
        pooled = ComparisonService(make_config(root, workers=2, processes=True)).run()
        assert pooled.results == threaded.results
        assert pooled.warnings == threaded.warnings == 0

    def test_unreadable_file_counts_warning(self, classroom, monkeypatch):
        root = classroom({
            "X": {"A1": {"a.txt": "a\n", "bad.txt": "b\n"}},
            "Y": {"A1": {"c.txt": "a\n"}},
        })
        import simcheck.scoring as scoring

        real_read = scoring.read_lines

        def flaky(path):
            if os.path.basename(path) == "bad.txt":
                raise PermissionError("denied")
            return real_read(path)

        monkeypatch.setattr(scoring, "read_lines", flaky)
        matrix = ComparisonService(make_config(root)).run()

        cell = matrix.get("X", "Y", "A1")
        assert len(cell.comparisons) == 1
        assert cell.max_similarity == 100.0
        assert matrix.warnings == 1


class TestComparisonMatrix:
    """Tests for ComparisonMatrix.store."""

    def test_self_comparison_rejected(self):
        from simcheck.models import AssignmentComparison
        matrix = ComparisonMatrix(students=["X"], assignments=["A1"])
        with pytest.raises(ValueError):
            matrix.store("X", "X", AssignmentComparison("A1", [], 0.0))


class TestConfig:
    """Tests for Config defaults taken from the environment."""

    def test_threshold_from_environment(self, monkeypatch):
        monkeypatch.setenv("SIMCHECK_THRESHOLD", "85.5")
        assert Config().threshold == 85.5

    def test_malformed_threshold_is_configuration_error(self, monkeypatch):
        monkeypatch.setenv("SIMCHECK_THRESHOLD", "seventy")
        with pytest.raises(ConfigurationError, match="SIMCHECK_THRESHOLD"):
            Config()

    def test_explicit_threshold_skips_environment(self, monkeypatch):
        monkeypatch.setenv("SIMCHECK_THRESHOLD", "seventy")
        assert Config(threshold=40.0).threshold == 40.0
