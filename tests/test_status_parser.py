"""Tests for the status report parser."""

import pytest

from gitcommander.git.models import FileConflictTypes, FileStates
from gitcommander.git.status_parser import (
    ParseMode,
    StatusParseError,
    StatusParser,
    parse_status,
)


def _by_name(states):
    return {fs.filename: fs for fs in states}


class TestEndToEnd:
    def test_all_sections(self, sample_status_all_sections):
        parser = StatusParser()
        assert parser.feed(sample_status_all_sections) is True

        states = _by_name(parser.states)
        assert set(states) == {"a.txt", "b.txt", "c.txt", "d.txt"}
        assert states["a.txt"].state == FileStates.NEW_IN_INDEX
        assert states["b.txt"].state == FileStates.MODIFIED_IN_WORKDIR
        assert states["c.txt"].state == FileStates.CONFLICTED
        assert states["c.txt"].conflict_type == FileConflictTypes.CHANGES
        assert states["d.txt"].state == FileStates.NEW_IN_WORKDIR
        assert states["d.txt"].conflict_type == FileConflictTypes.NONE

    def test_empty_input(self):
        parser = StatusParser()
        assert parser.feed([]) is True
        assert parser.states == []

    def test_clean_tree(self):
        text = "On branch main\nnothing to commit, working tree clean\n"
        assert parse_status(text) == []

    def test_git_column_spacing(self, sample_status_git_spacing):
        states = _by_name(parse_status(sample_status_git_spacing))
        assert states["src/app.py"].state == FileStates.MODIFIED_IN_INDEX | FileStates.MODIFIED_IN_WORKDIR
        assert states["old.txt"].state == FileStates.DELETED_FROM_INDEX
        assert states["gone.txt"].state == FileStates.DELETED_FROM_WORKDIR
        assert states["docs/notes.md"].state == FileStates.NEW_IN_WORKDIR

    def test_rename_keeps_whole_remainder(self, sample_status_git_spacing):
        states = _by_name(parse_status(sample_status_git_spacing))
        assert states["before.txt -> after.txt"].state == FileStates.RENAMED_IN_INDEX

    def test_reparse_is_idempotent(self, sample_status_git_spacing):
        first = parse_status(sample_status_git_spacing)
        second = parse_status(sample_status_git_spacing)
        assert set(first) == set(second)

    def test_crlf_lines(self):
        states = parse_status(["Untracked files:\r\n", "\tnew.txt\r\n"])
        assert states[0].filename == "new.txt"

    def test_leading_bom_on_header(self):
        parser = StatusParser()
        assert parser.parse_line("\ufeffChanges to be committed:") is True
        assert parser.mode == ParseMode.STAGED
        parser.parse_line("\tnew file:   a.txt")
        assert parser.states[0].state == FileStates.NEW_IN_INDEX


class TestSections:
    def test_mode_starts_unset(self):
        assert StatusParser().mode == ParseMode.UNSET

    @pytest.mark.parametrize("header,mode", [
        ("Changes to be committed:", ParseMode.STAGED),
        ("Changes not staged for commit:", ParseMode.UNSTAGED),
        ("Unmerged paths:", ParseMode.CONFLICTED),
        ("Untracked files:", ParseMode.UNTRACKED),
    ])
    def test_header_switches_mode(self, header, mode):
        parser = StatusParser()
        assert parser.parse_line(header) is True
        assert parser.mode == mode
        assert parser.states == []

    def test_header_must_match_exactly(self):
        parser = StatusParser()
        parser.parse_line("  Changes to be committed:")
        assert parser.mode == ParseMode.UNSET

    def test_untracked_section_ignores_conflict_tags(self):
        parser = StatusParser()
        assert parser.feed(["Untracked files:", "\tboth modified:\tc.txt"]) is True
        [fs] = parser.states
        assert fs.state == FileStates.NEW_IN_WORKDIR
        assert fs.conflict_type == FileConflictTypes.NONE
        assert not fs.has_state(FileStates.CONFLICTED)

    def test_staged_tag_in_conflicted_section_fails(self):
        parser = StatusParser()
        assert parser.feed(["Unmerged paths:", "\tnew file:\tx.txt"]) is False
        assert parser.states == []

    def test_tagged_line_before_any_header_fails(self):
        parser = StatusParser()
        assert parser.parse_line("\tmodified:\tx.txt") is False


class TestTagTable:
    @pytest.mark.parametrize("line,expected", [
        ("\tnew file:\tf", FileStates.NEW_IN_INDEX),
        ("\tmodified:\tf", FileStates.MODIFIED_IN_INDEX),
        ("\tdeleted:\tf", FileStates.DELETED_FROM_INDEX),
        ("\trenamed:\tf", FileStates.RENAMED_IN_INDEX),
        ("\ttypechange:\tf", FileStates.TYPE_CHANGE_IN_INDEX),
    ])
    def test_staged(self, line, expected):
        parser = StatusParser()
        parser.feed(["Changes to be committed:", line])
        assert parser.states[0].state == expected

    @pytest.mark.parametrize("line,expected", [
        ("\tmodified:\tf", FileStates.MODIFIED_IN_WORKDIR),
        ("\tdeleted:\tf", FileStates.DELETED_FROM_WORKDIR),
        ("\trenamed:\tf", FileStates.RENAMED_IN_WORKDIR),
        ("\ttypechange:\tf", FileStates.TYPE_CHANGE_IN_WORKDIR),
        ("\tnew file:\tf", FileStates.NEW_IN_WORKDIR),
    ])
    def test_unstaged(self, line, expected):
        parser = StatusParser()
        parser.feed(["Changes not staged for commit:", line])
        assert parser.states[0].state == expected

    def test_conflict_kinds(self, sample_status_conflicts):
        states = _by_name(parse_status(sample_status_conflicts))
        assert states["both.txt"].conflict_type == FileConflictTypes.CHANGES
        assert states["ours.txt"].conflict_type == FileConflictTypes.DELETED_BY_US
        assert states["theirs.txt"].conflict_type == FileConflictTypes.DELETED_BY_THEM
        assert states["nobody.txt"].conflict_type == FileConflictTypes.DELETED_BY_BOTH
        assert all(fs.state == FileStates.CONFLICTED for fs in states.values())


class TestCopies:
    def test_staged_copy_uses_target(self):
        parser = StatusParser()
        parser.feed(["Changes to be committed:", "\tcopied:\told/path.txt -> new/path.txt"])
        [fs] = parser.states
        assert fs.filename == "new/path.txt"
        assert fs.is_all_states([FileStates.COPIED, FileStates.NEW_IN_INDEX])

    def test_unstaged_copy_uses_target(self):
        parser = StatusParser()
        parser.feed(["Changes not staged for commit:", "\tcopied:     a.txt -> b.txt"])
        [fs] = parser.states
        assert fs.filename == "b.txt"
        assert fs.state == FileStates.COPIED | FileStates.NEW_IN_WORKDIR

    def test_copy_without_arrow_raises(self):
        parser = StatusParser()
        parser.parse_line("Changes to be committed:")
        with pytest.raises(StatusParseError):
            parser.parse_line("\tcopied:\tlonely.txt")
        assert parser.states == []


class TestMerging:
    def test_same_path_unions_bits(self):
        lines = [
            "Changes to be committed:",
            "\tmodified:\tboth.txt",
            "Changes not staged for commit:",
            "\tmodified:\tboth.txt",
        ]
        parser = StatusParser()
        assert parser.feed(lines) is True
        [fs] = parser.states
        assert fs.state == FileStates.MODIFIED_IN_INDEX | FileStates.MODIFIED_IN_WORKDIR

    def test_first_conflict_type_is_kept(self):
        lines = [
            "Unmerged paths:",
            "\tdeleted by us:\tx.txt",
            "\tboth modified:\tx.txt",
        ]
        [fs] = parse_status(lines)
        assert fs.conflict_type == FileConflictTypes.DELETED_BY_US
        assert fs.state == FileStates.CONFLICTED

    def test_insertion_order_preserved(self):
        lines = ["Untracked files:", "\tz.txt", "\ta.txt", "\tm.txt"]
        assert [fs.filename for fs in parse_status(lines)] == ["z.txt", "a.txt", "m.txt"]


class TestUnrecognisedLines:
    @pytest.mark.parametrize("header", [
        "Changes to be committed:",
        "Changes not staged for commit:",
        "Unmerged paths:",
    ])
    def test_unknown_tag_fails(self, header):
        parser = StatusParser()
        assert parser.feed([header, "\tweird-tag: foo.txt"]) is False
        assert all(fs.filename != "foo.txt" for fs in parser.states)
        assert parser.failed_lines == ["\tweird-tag: foo.txt"]

    def test_failure_does_not_stop_parsing(self):
        parser = StatusParser()
        ok = parser.feed([
            "Changes to be committed:",
            "\tweird-tag: foo.txt",
            "\tnew file:   bar.txt",
        ])
        assert ok is False
        assert [fs.filename for fs in parser.states] == ["bar.txt"]

    def test_parse_status_raises(self):
        with pytest.raises(StatusParseError, match="weird-tag"):
            parse_status(["Unmerged paths:", "\tboth added:  x.txt", "\tweird-tag: y"])

    @pytest.mark.parametrize("line", [
        "",
        "On branch main",
        '  (use "git add <file>..." to include in what will be committed)',
        "no changes added to commit (use \"git add\" and/or \"git commit -a\")",
        "\t",
    ])
    def test_free_text_is_ignored(self, line):
        parser = StatusParser()
        parser.parse_line("Changes to be committed:")
        assert parser.parse_line(line) is True
        assert parser.states == []
        assert parser.mode == ParseMode.STAGED


class TestQuotedPaths:
    def test_octal_escapes_decode_as_utf8(self):
        states = parse_status(["Untracked files:", '\t"\\303\\251t\\303\\251.txt"'])
        assert states[0].filename == "été.txt"

    def test_escaped_quote_and_backslash(self):
        states = parse_status(["Changes to be committed:", '\tnew file:   "say \\"hi\\" \\\\ bye.txt"'])
        assert states[0].filename == 'say "hi" \\ bye.txt'

    def test_control_escapes(self):
        states = parse_status(["Changes not staged for commit:", '\tmodified:   "tab\\there.txt"'])
        assert states[0].filename == "tab\there.txt"

    def test_quoted_copy_target(self):
        parser = StatusParser()
        parser.feed(["Changes to be committed:", '\tcopied:     "src \\"1\\".txt" -> "dst \\"2\\".txt"'])
        assert parser.states[0].filename == 'dst "2".txt'

    def test_unquoted_path_untouched(self):
        states = parse_status(["Untracked files:", '\tplain"name.txt'])
        assert states[0].filename == 'plain"name.txt'
