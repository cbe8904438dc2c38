from datetime import datetime

import pytest

from version_writer.config import WriterConfig
from version_writer.entries import ComponentEntry, FileEntry, parse_archive_value
from version_writer.errors import ManifestReadError, ManifestWriteError
from version_writer.manifest import ManifestWriter, load_prior_archives, read_manifest


def _cfg(**kw):
    return WriterConfig(version=kw.pop("version", "1.0.0"), include_paths=["."], **kw)


def _archiving_cfg(**kw):
    return _cfg(enable_extended_updater_features=True, **kw)


class TestArchiveValue:
    """Parsing [ArchivedFiles] values."""

    def test_id_and_size(self):
        assert parse_archive_value("abc,12") == ("abc", 12)

    def test_sentinel(self):
        """The "0" sentinel has a size but no id."""
        assert parse_archive_value("0") == (None, 0)

    def test_missing(self):
        assert parse_archive_value("") == (None, -1)
        assert parse_archive_value(None) == (None, -1)

    def test_garbage_size(self):
        assert parse_archive_value("abc,xx") == ("abc", -1)


class TestReadManifest:
    """Loading a previous version file."""

    def test_missing_file(self, dist):
        """No file means no prior state."""
        assert read_manifest(dist.root / "version") is None

    def test_parses_tables(self, dist):
        """Files, add-ons and archive data are read back."""
        dist.write("version", "\n".join([
            "[DTA]", "Version=1.2", "UpdaterVersion=3",
            "[FileVersions]", "a.txt=aaa,1", "b.txt=bbb,2", "bad.txt=onlyone", "odd.txt=x,notanint",
            "[AddOns]", "Maps=mmm,4", "Broken=zzz,nan",
            "[ArchivedFiles]", "b.txt=arc,1", "odd.txt=0", "",
        ]))
        man = read_manifest(dist.root / "version")
        assert man.version == "1.2"
        assert man.updater_version == "3"
        assert set(man.files) == {"a.txt", "b.txt", "odd.txt"}
        assert man.files["a.txt"].archived is False
        assert (man.files["b.txt"].archive_id, man.files["b.txt"].archive_size_kb) == ("arc", 1)
        assert man.files["odd.txt"].size_kb == 0
        assert man.files["odd.txt"].archived is True
        assert man.files["odd.txt"].archive_id is None
        assert list(man.components) == ["Maps"]
        assert man.components["Maps"].file.size_kb == 4

    def test_component_archive_lookup_uses_empty_path(self, dist):
        """Known edge case: components read from a manifest have no path, so their archive data is never found."""
        dist.write("version", "\n".join([
            "[DTA]", "Version=1",
            "[AddOns]", "Maps=mmm,4",
            "[ArchivedFiles]", "Maps/pack.mix=arc,2", "",
        ]))
        comp = read_manifest(dist.root / "version").components["Maps"]
        assert comp.path == ""
        assert comp.file.archived is False
        assert comp.file.archive_id is None

    def test_malformed(self, dist):
        """An unparseable file raises ManifestReadError."""
        dist.write("version", "no section header here\n")
        with pytest.raises(ManifestReadError):
            read_manifest(dist.root / "version")
        assert load_prior_archives(dist.root / "version") == {}


class TestManifestWriter:
    """Serializing a run."""

    def test_round_trip(self, dist):
        """Written file tables parse back to the same path -> (id, size) mapping."""
        files = [FileEntry("a.txt", "aaa", 0), FileEntry("Dir/b.txt", "bbb", 7), FileEntry("c d.bin", "ccc", 1234)]
        writer = ManifestWriter(_cfg(), files, [])
        writer.write(dist.root / "version", files)
        man = read_manifest(dist.root / "version")
        assert {p: (f.content_id, f.size_kb) for p, f in man.files.items()} == \
            {f.path: (f.content_id, f.size_kb) for f in files}

    def test_sections_and_version(self, dist):
        """DTA carries the version; empty tables are still written."""
        ManifestWriter(_cfg(), [], []).write(dist.root / "version", [])
        data = dist.read_ini("version")
        assert data["DTA"] == {"Version": "1.0.0"}
        assert data["FileVersions"] == {}
        assert data["AddOns"] == {}
        assert "ArchivedFiles" not in data

    def test_timestamp_version(self, dist):
        """ApplyTimestampOnVersion formats the version with the current time."""
        cfg = _cfg(version="%Y.%m.%d-%H", apply_timestamp_on_version=True)
        writer = ManifestWriter(cfg, [], [], now=datetime(2024, 1, 2, 15, 30))
        assert writer.render_version() == "2024.01.02-15"

    def test_extended_fields(self, dist):
        """Updater metadata is written only with extended features and when non-empty."""
        cfg = _archiving_cfg(updater_version="7", manual_download_url="")
        ManifestWriter(cfg, [], []).write(dist.root / "version", [])
        data = dist.read_ini("version")
        assert data["DTA"] == {"Version": "1.0.0", "UpdaterVersion": "7"}
        assert data["ArchivedFiles"] == {}

        cfg = _cfg(updater_version="7", manual_download_url="http://x")
        ManifestWriter(cfg, [], []).write(dist.root / "version", [])
        assert dist.read_ini("version")["DTA"] == {"Version": "1.0.0"}

    def test_no_archive_table_in_no_copy_mode(self, dist):
        """NoCopyMode disables the archive table even with extended features."""
        f = FileEntry("a.txt", "aaa", 1, archived=True)
        ManifestWriter(_archiving_cfg(no_copy_mode=True), [f], []).write(dist.root / "version", [f])
        assert "ArchivedFiles" not in dist.read_ini("version")

    def test_components_written(self, dist):
        """Add-ons are keyed by component id; their archives by path."""
        comp = ComponentEntry("Maps", FileEntry("Maps/pack.mix", "mmm", 4, archived=True,
                                                archive_id="arc", archive_size_kb=2))
        ManifestWriter(_archiving_cfg(), [], [comp]).write(dist.root / "version", [])
        data = dist.read_ini("version")
        assert data["AddOns"] == {"Maps": "mmm,4"}
        assert data["ArchivedFiles"] == {"Maps/pack.mix": "arc,2"}

    def test_backfill_previous_files(self, dist):
        """Only-changed manifests keep unchanged files that are still included."""
        included = [FileEntry("a.txt", "a2", 1), FileEntry("b.txt", "b1", 1)]
        previous = [FileEntry("a.txt", "a1", 1), FileEntry("b.txt", "b1", 1), FileEntry("gone.txt", "g", 1)]
        writer = ManifestWriter(_cfg(include_only_changed_files=True), included, [])
        writer.write(dist.root / "version", [included[0]], previous_files=previous)
        assert dist.read_ini("version")["FileVersions"] == {"a.txt": "a2,1", "b.txt": "b1,1"}

    def test_delete_and_recreate(self, dist):
        """The old file is replaced, not merged."""
        dist.write("version", "[DTA]\nVersion=old\n[FileVersions]\nstale.txt=x,1\n")
        f = FileEntry("a.txt", "aaa", 1)
        ManifestWriter(_cfg(), [f], []).write(dist.root / "version", [f])
        assert dist.read_ini("version")["FileVersions"] == {"a.txt": "aaa,1"}

    def test_write_failure(self, dist):
        """I/O failures surface as ManifestWriteError."""
        (dist.root / "version").mkdir()
        with pytest.raises(ManifestWriteError):
            ManifestWriter(_cfg(), [], []).write(dist.root / "version", [])


class TestArchiveFallback:
    """Choosing the [ArchivedFiles] value for an archived entry."""

    def test_fresh_metadata_wins(self):
        """Complete fresh metadata is used as is."""
        f = FileEntry("a", archived=True, archive_id="new", archive_size_kb=5)
        assert ManifestWriter.archive_value(f, {"a": "old,9"}) == "new,5"

    def test_prior_metadata_carried_forward(self):
        """Without fresh metadata the replaced manifest's value is reused, not the sentinel."""
        f = FileEntry("a", archived=True)
        assert ManifestWriter.archive_value(f, {"a": "old,9"}) == "old,9"

    def test_prior_used_when_fresh_size_is_zero(self):
        """A fresh archive under 1 KB defers to a recorded value."""
        f = FileEntry("a", archived=True, archive_id="new", archive_size_kb=0)
        assert ManifestWriter.archive_value(f, {"a": "old,0"}) == "old,0"

    def test_fresh_id_without_prior(self):
        """A sub-kilobyte fresh archive with nothing recorded keeps its own id."""
        f = FileEntry("a", archived=True, archive_id="new", archive_size_kb=0)
        assert ManifestWriter.archive_value(f, {}) == "new,0"

    def test_sentinel_when_nothing_known(self):
        """No metadata anywhere gives "0"."""
        f = FileEntry("a", archived=True)
        assert ManifestWriter.archive_value(f, {}) == "0"
        assert ManifestWriter.archive_value(f, {"a": "0"}) == "0"

    def test_write_uses_prior_table(self, dist):
        """write() applies the fallback per entry."""
        fresh = FileEntry("a.txt", "a", 1, archived=True, archive_id="A", archive_size_kb=3)
        stale = FileEntry("b.txt", "b", 1, archived=True)
        unknown = FileEntry("c.txt", "c", 1, archived=True)
        files = [fresh, stale, unknown]
        ManifestWriter(_archiving_cfg(), files, []).write(
            dist.root / "version", files, prior_archives={"a.txt": "X,1", "b.txt": "B,2"})
        assert dist.read_ini("version")["ArchivedFiles"] == {"a.txt": "A,3", "b.txt": "B,2", "c.txt": "0"}
