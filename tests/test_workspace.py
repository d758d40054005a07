from pathlib import Path
import tempfile, shutil
import pytest
from bog.core import BogConfig, BogWorkspace, CitekeyNotFoundError

NOTES = {
    "reading.org": "* smith2020lexicon\nCompare with doe2001study.\n* Theory\n:PROPERTIES:\n:CUSTOM_ID: jones1999theory\n:END:\nBuilds on smith2020lexicon.\n",
    "ideas.org": "* Ideas\nMaybe read zed2000zeta.\n",
    "draft.txt": "* kim2010ignored\n",
}


@pytest.fixture()
def root():
    d = Path(tempfile.mkdtemp())
    for sub in ("notes", "citekey-files", "stage", "bibs"):
        (d / sub).mkdir()
    for name, text in NOTES.items():
        (d / "notes" / name).write_text(text, encoding="utf-8")
    (d / "notes" / ".#reading.org").write_text("* lock2000file\n")
    (d / "citekey-files" / "smith2020lexicon.pdf").write_bytes(b"%PDF-1.4")
    (d / "bibs" / "smith2020lexicon.bib").write_text("@article{smith2020lexicon,\n}\n")
    yield d
    shutil.rmtree(d, ignore_errors=True)


def test_workspace_citekey_sets(root):
    ws = BogWorkspace(BogConfig(root_directory=root))
    assert ws.all_citekeys() == {"smith2020lexicon", "doe2001study", "jones1999theory", "zed2000zeta"}
    assert ws.heading_citekeys() == {"smith2020lexicon", "jones1999theory"}
    assert ws.file_citekeys() == {"smith2020lexicon"}
    assert ws.bib_citekeys() == {"smith2020lexicon"}


def test_workspace_orphans_and_headings(root):
    ws = BogWorkspace(BogConfig(root_directory=root))
    orphans = ws.orphans()
    assert orphans == {
        str(root / "notes" / "ideas.org"): ["zed2000zeta"],
        str(root / "notes" / "reading.org"): ["doe2001study"],
    }
    (doc, heading), = ws.heading_for("jones1999theory")
    assert heading.title == "Theory"
    assert ws.duplicates() == {}
    with pytest.raises(CitekeyNotFoundError):
        ws.heading_for("doe2001study")


def test_workspace_point_files_and_url(root):
    ws = BogWorkspace(BogConfig(root_directory=root))
    note = root / "notes" / "reading.org"
    text = note.read_text()
    assert ws.citekey_at_point(note, text.index("Builds")) == "jones1999theory"
    assert ws.citekey_at_point(note, text.index("doe2001") + 3) == "doe2001study"
    assert ws.file_for("smith2020lexicon") == root / "citekey-files" / "smith2020lexicon.pdf"
    assert ws.bib_for("smith2020lexicon").path == root / "bibs" / "smith2020lexicon.bib"
    assert ws.web_search_url("smith2020lexicon") == "http://scholar.google.com/scholar?q=smith+2020+lexicon"


def test_workspace_rename_and_combined_bib(root):
    ws = BogWorkspace(BogConfig(root_directory=root, file_secondary_suffix="-supp"))
    (root / "stage" / "new.pdf").write_bytes(b"%PDF-1.4")
    renamed = ws.rename_staged(lambda p: "smith2020lexicon")
    assert renamed == [(root / "stage" / "new.pdf", root / "citekey-files" / "smith2020lexicon-supp.pdf")]
    assert len(ws.files_for("smith2020lexicon")) == 2
    missing = ws.combined_bib(root / "all.bib")
    assert missing == ["doe2001study", "jones1999theory", "zed2000zeta"]
    assert "smith2020lexicon" in (root / "all.bib").read_text()


def test_workspace_cache_needs_clear(root):
    ws = BogWorkspace(BogConfig(root_directory=root, use_cache=True))
    assert "kim2010fresh" not in ws.all_citekeys()
    (root / "notes" / "new.org").write_text("* kim2010fresh\n")
    assert "kim2010fresh" not in ws.all_citekeys()
    ws.clear_cache()
    assert "kim2010fresh" in ws.all_citekeys()
