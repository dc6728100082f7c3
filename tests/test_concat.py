"""Tests for concat-demuxer manifests."""

import pytest

from clipreel.concat import quote_entry, write_concat_manifest


class TestQuoteEntry:
    def test_plain_name(self):
        assert quote_entry("a.ts") == "file 'a.ts'"

    def test_single_quote_escaped(self):
        assert quote_entry("it's.ts") == "file 'it'\\''s.ts'"

    def test_spaces_kept_inside_quotes(self):
        assert quote_entry("my clip.ts") == "file 'my clip.ts'"


class TestWriteConcatManifest:
    def test_three_members_three_lines_in_order(self, tmp_path):
        members = [tmp_path / n for n in ("a.ts", "b.ts", "c.ts")]
        manifest = write_concat_manifest(members, tmp_path / "list.txt")
        assert manifest.read_text().splitlines() == [
            "file 'a.ts'",
            "file 'b.ts'",
            "file 'c.ts'",
        ]

    def test_no_absolute_paths(self, tmp_path):
        members = [tmp_path / "a.ts", tmp_path / "b.ts"]
        text = write_concat_manifest(members, tmp_path / "list.txt").read_text()
        assert str(tmp_path) not in text
        assert "/" not in text

    def test_order_is_input_order_not_name_order(self, tmp_path):
        members = [tmp_path / n for n in ("c.ts", "a.ts", "b.ts")]
        lines = write_concat_manifest(members, tmp_path / "list.txt").read_text().splitlines()
        assert lines == ["file 'c.ts'", "file 'a.ts'", "file 'b.ts'"]

    def test_relative_member_in_same_directory(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        write_concat_manifest(["a.ts"], "list.txt")
        assert (tmp_path / "list.txt").read_text() == "file 'a.ts'\n"

    def test_member_in_other_directory_rejected(self, tmp_path):
        (tmp_path / "sub").mkdir()
        with pytest.raises(ValueError, match="not in the manifest directory"):
            write_concat_manifest([tmp_path / "sub" / "a.ts"], tmp_path / "list.txt")

    def test_empty_rejected(self, tmp_path):
        with pytest.raises(ValueError, match="at least one"):
            write_concat_manifest([], tmp_path / "list.txt")
        assert not (tmp_path / "list.txt").exists()
