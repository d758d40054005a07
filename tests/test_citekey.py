import pytest
from bog.core.citekey import (
    CitekeyFormat,
    all_citekeys,
    citekey_at,
    citekey_prefix,
    citekey_spans,
    is_citekey,
    validate_citekey,
)
from bog.core.errors import InvalidCitekeyError


@pytest.mark.parametrize("text,expected", [
    ("smith2020lexicon", True),
    ("de-la-cruz2019model", True),
    ("Smith2020lexicon", False),
    ("smith2020Lexicon", False),
    ("smith20lexicon", False),
    ("smith2020lexicon extra", False),
    (" smith2020lexicon", False),
    ("", False),
])
def test_is_citekey_whole_string_case_sensitive(text, expected):
    assert is_citekey(text) is expected


def test_citekey_at_inside_token():
    text = "see smith2020lexicon here"
    pos = text.index("smith") + 4
    assert citekey_at(text, pos) == "smith2020lexicon"
    assert citekey_at(text, text.index("here") + 1) is None


def test_citekey_at_token_end_and_hyphenated_author():
    text = "(doe-smith2001study)"
    assert citekey_at(text, text.index("study") + len("study")) == "doe-smith2001study"
    assert citekey_at(text, 3) == "doe-smith2001study"


def test_citekey_at_underscore_joins_word():
    # underscore is part of the word around the cursor, so the span does not start with a citekey
    text = "x_smith2020lexicon"
    assert citekey_at(text, 5) is None


def test_citekey_at_out_of_range():
    assert citekey_at("smith2020lexicon", 99) is None
    assert citekey_at("", 0) is None


def test_all_citekeys_deduplicates():
    text = "smith2020lexicon and jones1999theory, again smith2020lexicon."
    assert all_citekeys(text) == ["smith2020lexicon", "jones1999theory"]
    spans = citekey_spans(text)
    assert len(spans) == 3
    start, end, key = spans[1]
    assert text[start:end] == key == "jones1999theory"


def test_custom_format():
    fmt = CitekeyFormat.from_string(r"\b(?P<author>[A-Z][a-z]+)(?P<year>[0-9]{4})\b")
    assert fmt.group_names == ("author", "year")
    assert is_citekey("Smith2020", fmt)
    assert not is_citekey("smith2020", fmt)
    assert fmt.group_index("year") == 2
    with pytest.raises(ValueError):
        fmt.group_index(3)


def test_format_rejects_ignorecase_and_missing_groups():
    with pytest.raises(ValueError):
        CitekeyFormat.from_string(r"(?i)\b([a-z]+)[0-9]{4}\b")
    with pytest.raises(ValueError):
        CitekeyFormat.from_string(r"\b[a-z]+[0-9]{4}\b")


def test_format_requires_word_boundaries():
    with pytest.raises(ValueError):
        CitekeyFormat.from_string(r"([a-z]+)")
    with pytest.raises(ValueError):
        CitekeyFormat.from_string(r"\b([a-z]+)[0-9]{4}")
    fmt = CitekeyFormat.from_string(r"(?x) \b ([a-z]+) ([0-9]{4}) \b")
    assert fmt.pattern.groups == 2


def test_citekey_prefix_of_file_names():
    assert citekey_prefix("jones1999theory.pdf") == "jones1999theory"
    assert citekey_prefix("jones1999theory-supp.pdf") == "jones1999theory"
    assert citekey_prefix("jones1999theory_supp.pdf", separators="-_") == "jones1999theory"
    assert citekey_prefix("readme.md") is None


def test_validate_citekey():
    assert validate_citekey("smith2020lexicon") == "smith2020lexicon"
    with pytest.raises(InvalidCitekeyError):
        validate_citekey("not a key")
    with pytest.raises(ValueError):
        validate_citekey("")
