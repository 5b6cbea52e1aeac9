"""Tests for git argument building and output decoding."""

from datetime import datetime, timedelta, timezone

import pytest

from git_log_reader.core.exceptions import DecodeFailure
from git_log_reader.core.reader import (
    FIELD_DELIMITER,
    RECORD_DELIMITER,
    build_args,
    format_directive,
    parse_output,
    parse_record,
)
from git_log_reader.models.options import Options

F = FIELD_DELIMITER
R = RECORD_DELIMITER


def record(subject: str, date: str, body: str, commit_hash: str = None) -> str:
    fields = [subject, date] + ([commit_hash] if commit_hash is not None else []) + [body]
    return F.join(fields) + R


def test_delimiters_are_distinct():
    assert FIELD_DELIMITER != RECORD_DELIMITER
    assert FIELD_DELIMITER not in RECORD_DELIMITER
    assert RECORD_DELIMITER not in FIELD_DELIMITER


def test_format_directive():
    assert format_directive() == f"--format=format:%s{F}%cI{F}%b{R}"
    assert format_directive(include_hash=True) == f"--format=format:%s{F}%cI{F}%H{F}%b{R}"


def test_build_args_defaults():
    assert build_args(Options()) == ["log", format_directive(), "--no-merges", "HEAD"]


def test_build_args_with_merges():
    args = build_args(Options(merges=True))
    assert "--no-merges" not in args
    assert args[-1] == "HEAD"


def test_build_args_with_range():
    args = build_args(Options(range="v1.0..main"))
    assert args[-1] == "v1.0..main"


def test_build_args_single_path_is_not_split():
    args = build_args(Options(path="src/module.py"))
    assert args[-3:] == ["HEAD", "--", "src/module.py"]


def test_build_args_multiple_paths_keep_order():
    args = build_args(Options(path=["b", "a"], range="main"))
    assert args[-4:] == ["main", "--", "b", "a"]


def test_build_args_with_hash():
    args = build_args(Options(include_hash=True))
    assert args[1] == format_directive(include_hash=True)


def test_parse_empty_output():
    assert parse_output("") == []
    assert parse_output("\n") == []


def test_parse_single_record():
    commits = parse_output(record("Foobar", "2024-03-01T12:30:45+01:00", "\n"))

    assert len(commits) == 1
    assert commits[0].subject == "Foobar"
    assert commits[0].body == ""
    assert commits[0].date == datetime(
        2024, 3, 1, 12, 30, 45, tzinfo=timezone(timedelta(hours=1))
    )
    assert commits[0].date.utcoffset() == timedelta(hours=1)


@pytest.mark.parametrize("trailer", ["", "\n", "\r\n"])
def test_parse_strips_trailing_terminator(trailer):
    output = (
        record("Second", "2024-03-02T00:00:00+00:00", "Body two")
        + "\n"
        + record("First", "2024-03-01T00:00:00+00:00", "Body one")
        + trailer
    )

    commits = parse_output(output)

    assert [c.subject for c in commits] == ["Second", "First"]
    assert [c.body for c in commits] == ["Body two", "Body one"]


def test_parse_keeps_inner_blank_lines():
    body = "line one\n\nline two\n"
    commits = parse_output(record("Subject", "2024-03-01T00:00:00+00:00", body))

    assert commits[0].body == "line one\n\nline two"


def test_parse_body_containing_field_delimiter():
    body = f"left {F} right"
    commits = parse_output(record("Subject", "2024-03-01T00:00:00+00:00", body))

    assert commits[0].body == body


def test_parse_hash_passes_through():
    sha1 = "a" * 40
    sha256 = "0123456789abcdef" * 4
    output = (
        record("New", "2024-03-02T00:00:00+00:00", "", sha256)
        + "\n"
        + record("Old", "2024-03-01T00:00:00+00:00", "", sha1)
    )

    commits = parse_output(output, include_hash=True)

    assert [c.hash for c in commits] == [sha256, sha1]


def test_parse_record_missing_fields():
    with pytest.raises(DecodeFailure) as exc_info:
        parse_record(f"Subject{F}2024-03-01T00:00:00+00:00")

    assert exc_info.value.chunk == f"Subject{F}2024-03-01T00:00:00+00:00"


def test_parse_record_missing_hash_field():
    chunk = f"Subject{F}2024-03-01T00:00:00+00:00{F}body"
    # Without a hash this is a complete record, with one the body would be lost
    assert parse_record(chunk).body == "body"
    with pytest.raises(DecodeFailure):
        parse_record(chunk, include_hash=True)


def test_parse_record_invalid_date():
    with pytest.raises(DecodeFailure):
        parse_record(f"Subject{F}yesterday{F}body")


def test_parse_output_ignoring_format_fails_loudly():
    """Output from a git that ignored --format cannot be decoded."""
    output = "commit abc\nAuthor: Someone\n\n    Subject\n"

    with pytest.raises(DecodeFailure):
        parse_output(output)


def test_parse_subject_containing_field_delimiter():
    subject = f"left {F} right"
    commits = parse_output(
        record(subject, "2024-03-01T00:00:00+00:00", f"body {F} too", "b" * 40),
        include_hash=True,
    )

    assert commits[0].subject == subject
    assert commits[0].body == f"body {F} too"
    assert commits[0].hash == "b" * 40


def test_parse_body_containing_record_delimiter_fails():
    output = record("Subject", "2024-03-01T00:00:00+00:00", f"before {R} after")

    with pytest.raises(DecodeFailure) as exc_info:
        parse_output(output)

    assert exc_info.value.chunk == " after"
