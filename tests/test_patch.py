import pytest

from assistkit.utils.errors import InvalidPatchError
from assistkit.utils.patch import (
    Hunk,
    HunkLine,
    PatchKind,
    apply_hunks,
    apply_patch,
    parse_patch,
)


def _patch(*body: str) -> str:
    return "*** Begin Patch\n" + "\n".join(body) + "\n*** End Patch\n"


def test_add_file_creates_parents_and_content(tmp_path):
    apply_patch(_patch("*** Add File: a/b.txt", "+hello", "+world"), str(tmp_path))
    assert (tmp_path / "a" / "b.txt").read_text() == "hello\nworld"


def test_add_existing_file_fails(tmp_path):
    (tmp_path / "x.txt").write_text("old")
    with pytest.raises(InvalidPatchError, match="already exists"):
        apply_patch(_patch("*** Add File: x.txt", "+new"), str(tmp_path))
    assert (tmp_path / "x.txt").read_text() == "old"


def test_delete_file(tmp_path):
    (tmp_path / "gone.txt").write_text("bye")
    apply_patch(_patch("*** Delete File: gone.txt"), str(tmp_path))
    assert not (tmp_path / "gone.txt").exists()


def test_delete_missing_file_fails(tmp_path):
    with pytest.raises(InvalidPatchError, match="not found"):
        apply_patch(_patch("*** Delete File: nope.txt"), str(tmp_path))


def test_update_replaces_line_after_anchor(tmp_path):
    target = tmp_path / "f.txt"
    target.write_text("one\ntwo\nthree\n")
    apply_patch(_patch("*** Update File: f.txt", "@@ two", "-two", "+TWO"), str(tmp_path))
    assert target.read_text() == "one\nTWO\nthree\n"


def test_update_inserts_after_anchor_without_old_lines(tmp_path):
    target = tmp_path / "f.txt"
    target.write_text("one\ntwo\n")
    apply_patch(_patch("*** Update File: f.txt", "@@ one", "+inserted"), str(tmp_path))
    assert target.read_text().split("\n")[:3] == ["one", "inserted", "two"]


def test_update_anchor_not_found(tmp_path):
    (tmp_path / "f.txt").write_text("one\n")
    with pytest.raises(InvalidPatchError, match="anchor not found"):
        apply_patch(_patch("*** Update File: f.txt", "@@ missing", "+x"), str(tmp_path))


def test_update_with_move(tmp_path):
    (tmp_path / "old.txt").write_text("a\nb\n")
    apply_patch(
        _patch("*** Update File: old.txt", "*** Move to: sub/new.txt", "@@", "-a", "+A"),
        str(tmp_path),
    )
    assert not (tmp_path / "old.txt").exists()
    assert (tmp_path / "sub" / "new.txt").read_text().startswith("A\nb")


def test_update_move_target_exists(tmp_path):
    (tmp_path / "old.txt").write_text("a\n")
    (tmp_path / "new.txt").write_text("keep")
    with pytest.raises(InvalidPatchError, match="move target exists"):
        apply_patch(
            _patch("*** Update File: old.txt", "*** Move to: new.txt", "@@", "-a", "+b"),
            str(tmp_path),
        )
    assert (tmp_path / "new.txt").read_text() == "keep"


def test_update_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        apply_patch(_patch("*** Update File: none.txt", "@@", "+x"), str(tmp_path))


def test_crlf_patch_is_normalized(tmp_path):
    text = _patch("*** Add File: c.txt", "+x", "+y").replace("\n", "\r\n")
    apply_patch(text, str(tmp_path))
    assert (tmp_path / "c.txt").read_text() == "x\ny"


def test_escaping_path_rejected(tmp_path):
    with pytest.raises(InvalidPatchError, match="escapes"):
        apply_patch(_patch("*** Delete File: ../outside.txt"), str(tmp_path))


def test_parse_structure():
    ops = parse_patch(
        _patch(
            "*** Add File: n.txt",
            "+line",
            "*** Update File: u.txt",
            "@@ anchor",
            " ctx",
            "-old",
            "+new",
            "*** Delete File: d.txt",
        )
    )
    assert [op.kind for op in ops] == [PatchKind.ADD, PatchKind.UPDATE, PatchKind.DELETE]
    assert [op.path for op in ops] == ["n.txt", "u.txt", "d.txt"]
    assert ops[0].add_lines == ["line"]
    assert ops[1].hunks == [
        Hunk("anchor", [HunkLine(" ", "ctx"), HunkLine("-", "old"), HunkLine("+", "new")])
    ]


@pytest.mark.parametrize(
    "text, message",
    [
        ("", "empty patch"),
        ("hello\n*** End Patch\n", "Begin Patch"),
        ("*** Begin Patch\n*** Delete File: a\n", "End Patch"),
        (_patch("*** Rename File: a"), "unknown patch header"),
        (_patch("*** Add File: a", "no plus"), "must start with"),
        (_patch("*** Update File: a", "not a header"), "expected hunk header"),
        (_patch("*** Update File: a", "@@", "?bad"), "invalid hunk line prefix"),
    ],
)
def test_parse_errors(text, message):
    with pytest.raises(InvalidPatchError, match=message):
        parse_patch(text)


def test_apply_hunks_without_hunks_returns_content():
    assert apply_hunks("x\ny", []) == "x\ny"


def test_apply_hunks_context_replacement():
    hunk = Hunk("", [HunkLine(" ", "a"), HunkLine("-", "b"), HunkLine("+", "B")])
    assert apply_hunks("a\nb\nc", [hunk]).split("\n") == ["a", "B", "c"]


def test_apply_hunks_target_missing():
    hunk = Hunk("", [HunkLine("-", "zzz")])
    with pytest.raises(InvalidPatchError, match="hunk target not found"):
        apply_hunks("a\nb", [hunk])


def test_apply_hunks_invalid_op():
    with pytest.raises(InvalidPatchError, match="invalid hunk op"):
        apply_hunks("a", [Hunk("", [HunkLine("*", "a")])])