import os
import re

import pytest

from assistkit.utils.find import find


@pytest.fixture
def tree(tmp_path):
    (tmp_path / "a.txt").write_text("hello")
    (tmp_path / "b.go").write_text("package main\n")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "c.txt").write_text("inner file")
    (tmp_path / ".hidden").mkdir()
    (tmp_path / ".hidden" / "d.txt").write_text("secret stuff")
    return tmp_path


def test_root_comes_first_and_everything_is_found(tree):
    results = find(str(tree))
    assert results[0].path == str(tree)
    names = {r.name for r in results[1:]}
    assert names == {"a.txt", "b.go", "sub", "c.txt", ".hidden", "d.txt"}


def test_children_follow_their_directory(tree):
    paths = [r.path for r in find(str(tree))]
    assert paths.index(os.path.join(str(tree), "sub")) < paths.index(
        os.path.join(str(tree), "sub", "c.txt")
    )


def test_name_pattern_filters_on_base_name(tree):
    results = find(str(tree), name_pattern=r"\.txt$")
    assert {r.name for r in results} == {"a.txt", "c.txt", "d.txt"}


def test_type_filter_directories(tree):
    results = find(str(tree), type_filter="d")
    assert all(r.is_dir for r in results)
    assert {"sub", ".hidden"} <= {r.name for r in results}


def test_type_filter_files(tree):
    results = find(str(tree), type_filter="f")
    assert not any(r.is_dir for r in results)
    assert len(results) == 4


def test_hidden_directories_can_be_skipped(tree):
    names = {r.name for r in find(str(tree), search_hidden=False)}
    assert ".hidden" not in names
    assert "d.txt" not in names
    assert "c.txt" in names


def test_size_limits(tree):
    small = len("hello")
    results = find(str(tree), type_filter="f", min_size=small + 1)
    assert "a.txt" not in {r.name for r in results}
    results = find(str(tree), type_filter="f", max_size=small)
    assert {r.name for r in results} == {"a.txt"}


def test_with_content_reads_files(tree):
    results = find(str(tree), name_pattern=r"^a\.txt$", with_content=True)
    assert [r.content for r in results] == ["hello"]
    assert results[0].size == len("hello")


def test_metadata_format(tree):
    result = find(str(tree), name_pattern=r"^b\.go$")[0]
    assert re.fullmatch(r"\d{4}-\d\d-\d\d \d\d:\d\d:\d\d", result.mod_time)
    assert len(result.mode) == 10
    assert result.mode.startswith("-")


def test_invalid_name_pattern(tree):
    with pytest.raises(ValueError, match="invalid name pattern"):
        find(str(tree), name_pattern="(")


def test_invalid_type_filter(tree):
    with pytest.raises(ValueError, match="invalid type filter"):
        find(str(tree), type_filter="x")


def test_missing_root(tmp_path):
    with pytest.raises(FileNotFoundError):
        find(str(tmp_path / "missing"))