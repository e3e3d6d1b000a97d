from __future__ import annotations

from i18n import EN, FR, translate, translator


def test_french_and_english_cover_the_same_keys() -> None:
    assert set(EN) == set(FR)


def test_translate_falls_back_to_english_then_key() -> None:
    assert translate("fr", "salary") == "Salaire"
    assert translate("de", "salary") == "Salary"
    assert translate("fr", "no_such_label", "Fallback") == "Fallback"
    assert translate("en", "no_such_label") == "no_such_label"


def test_translator_binds_language() -> None:
    t = translator("fr")
    assert t("logout") == "Déconnexion"
