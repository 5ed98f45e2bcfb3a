import io

from assistkit.utils.lines import iter_lines


def test_text_lines_strip_line_endings():
    stream = io.StringIO("a\r\nb\n\nc")
    assert list(iter_lines(stream)) == ["a", "b", "", "c"]


def test_binary_lines():
    stream = io.BytesIO(b"one\ntwo\r\n")
    assert list(iter_lines(stream)) == [b"one", b"two"]


def test_empty_stream():
    assert list(iter_lines(io.StringIO(""))) == []


def test_long_line_is_not_split():
    long_line = "x" * 200_000
    assert list(iter_lines(io.StringIO(long_line + "\nend"))) == [long_line, "end"]


def test_is_lazy():
    stream = io.StringIO("first\nsecond\n")
    lines = iter_lines(stream)
    assert next(lines) == "first"
    assert stream.read() == "second\n"