"""
Unit tests for simcheck/classroom.py

Display-name mapping and classroom metadata lookup.
"""
import json

from simcheck.classroom import (
    display_names,
    find_classroom_file,
    load_classroom,
    parse_classroom,
    repo_name,
)


class TestRepoName:
    """Tests for repo_name function."""

    def test_first_last_is_swapped(self):
        assert repo_name("jane.doe@school.edu") == "doe.jane"

    def test_other_shapes_kept(self):
        assert repo_name("jdoe@school.edu") == "jdoe"
        assert repo_name("a.b.c@school.edu") == "a.b.c"


class TestParseClassroom:
    """Tests for parse_classroom function."""

    def test_classroom_json(self):
        room = parse_classroom({
            "Organization": {"Id": 1, "Login": "org"},
            "Classroom": {"Id": 7, "Name": "web-101"},
            "Students": [
                {"Name": "Jane Doe", "Email": "jane.doe@school.edu", "GithubUser": "janed"},
                {"Name": "", "Email": "nobody@school.edu"},
            ],
        })
        assert room.name == "web-101"
        assert room.names == {"doe.jane": "Jane Doe", "janed": "Jane Doe"}

    def test_flat_map(self):
        room = parse_classroom({"doe.jane": "Jane Doe", "x": ""})
        assert room.name is None
        assert room.names == {"doe.jane": "Jane Doe"}


class TestLoadClassroom:
    """Tests for find_classroom_file and load_classroom."""

    def test_found_by_walking_up(self, tmp_path):
        meta = tmp_path / ".mmc" / "classroom.json"
        meta.parent.mkdir()
        meta.write_text(json.dumps({"Classroom": {"Name": "web-101"}}), encoding="utf-8")
        nested = tmp_path / "module" / "students"
        nested.mkdir(parents=True)

        assert find_classroom_file(str(nested)) == str(meta)
        assert load_classroom(find_classroom_file(str(nested))).name == "web-101"

    def test_missing_and_malformed_are_harmless(self, tmp_path):
        bad = tmp_path / "names.json"
        bad.write_text("{not json", encoding="utf-8")
        assert load_classroom(None).names == {}
        assert load_classroom(str(bad)).names == {}
        assert load_classroom(str(tmp_path / "missing.json")).name is None

    def test_list_payload_is_ignored(self, tmp_path):
        path = tmp_path / "names.json"
        path.write_text("[1, 2]", encoding="utf-8")
        assert load_classroom(str(path)).names == {}


class TestDisplayNames:
    """Tests for display_names function."""

    def test_falls_back_to_identity(self):
        lookup = display_names({"doe.jane": "Jane Doe"})
        assert lookup("doe.jane") == "Jane Doe"
        assert lookup("roe.rick") == "roe.rick"
