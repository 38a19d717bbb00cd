from orderledger.utils.search import (
    matches_all_tokens,
    normalize_owner_key,
    normalize_phone,
    normalize_search_text,
    text_contains,
    to_search_tokens,
)


def test_normalize_folds_case_and_diacritics():
    assert normalize_search_text("Miloš Čačak") == "milos cacak"
    assert normalize_search_text("ĐORĐE") == "djordje"
    assert normalize_search_text("Đurđevak") == "djurdjevak"


def test_normalize_is_total():
    assert normalize_search_text("") == ""
    assert normalize_search_text(None) == ""


def test_owner_keys_collide():
    assert normalize_owner_key("Miloš") == normalize_owner_key("milos") == normalize_owner_key("MILOŠ ")


def test_phone_keeps_digits_only():
    assert normalize_phone("+381 (64) 123-45-67") == "381641234567"
    assert normalize_phone(None) == ""


def test_tokens_must_all_match():
    tokens = to_search_tokens("  Petar   Novi ")
    assert tokens == ["petar", "novi"]
    assert matches_all_tokens("petar petrovic novi sad", tokens)
    assert not matches_all_tokens("petar petrovic beograd", tokens)
    assert matches_all_tokens("anything", [])


def test_text_contains_normalizes_haystack():
    assert text_contains("Šećer u prahu", "secer")
    assert not text_contains("Brašno", "secer")
    assert text_contains(None, "")
