"""Tests for translation setup and language detection."""

import pytest

from guild_site.i18n.config import (
    LANGUAGE_STORAGE_KEY,
    I18n,
    init_i18n,
    load_resources,
    parse_accept_language,
)

RESOURCES = {
    "en": {"greeting": "Hello {{name}}", "nav": {"home": "Home"}, "only_en": "English only"},
    "no": {"greeting": "Hei {{name}}", "nav": {"home": "Hjem"}},
}


@pytest.fixture
def i18n() -> I18n:
    return init_i18n(RESOURCES)


class TestDetectLanguage:
    """Tests for detection order."""

    def test_stored_choice_wins(self, i18n: I18n) -> None:
        assert i18n.detect_language(stored="no", accept_language="en-GB,en;q=0.9") == "no"

    def test_browser_preference_when_nothing_stored(self, i18n: I18n) -> None:
        assert i18n.detect_language(accept_language="nb-NO,nb;q=0.9,en;q=0.8") == "no"

    def test_quality_ordering(self, i18n: I18n) -> None:
        assert i18n.detect_language(accept_language="en;q=0.4,no;q=0.9") == "no"

    def test_unsupported_falls_back_to_english(self, i18n: I18n) -> None:
        assert i18n.detect_language(stored="de", accept_language="fr-FR,de;q=0.5") == "en"

    def test_nothing_known(self, i18n: I18n) -> None:
        assert i18n.detect_language() == "en"

    def test_parse_accept_language(self) -> None:
        assert list(parse_accept_language("da, en-GB;q=0.8, *;q=0.1")) == ["da", "en-gb"]
        assert list(parse_accept_language(None)) == []


class TestChangeLanguage:
    """Tests for change_language."""

    def test_persists_choice(self, i18n: I18n) -> None:
        storage = {}
        assert i18n.change_language("nn", storage) == "no"
        assert storage[LANGUAGE_STORAGE_KEY] == "no"

    def test_rejects_unsupported(self, i18n: I18n) -> None:
        storage = {}
        with pytest.raises(ValueError):
            i18n.change_language("klingon", storage)
        assert storage == {}


class TestTranslate:
    """Tests for t()."""

    def test_nested_key(self, i18n: I18n) -> None:
        assert i18n.t("nav.home", language="no") == "Hjem"

    def test_interpolation(self, i18n: I18n) -> None:
        assert i18n.t("greeting", language="no", name="Kraken") == "Hei Kraken"

    def test_falls_back_to_english_then_default_then_key(self, i18n: I18n) -> None:
        assert i18n.t("only_en", language="no") == "English only"
        assert i18n.t("missing.key", "Fallback", language="no") == "Fallback"
        assert i18n.t("missing.key", language="no") == "missing.key"

    def test_translator_binds_language(self, i18n: I18n) -> None:
        t = i18n.translator("no")
        assert t("greeting", name="Guttakrutt") == "Hei Guttakrutt"


class TestBundles:
    """Tests for the shipped locale bundles."""

    def test_english_and_norwegian_loaded(self) -> None:
        resources = load_resources()
        assert set(resources) == {"en", "no"}

    def test_bundles_share_sections(self) -> None:
        resources = load_resources()
        assert set(resources["en"]) == set(resources["no"])

    def test_missing_fallback_bundle(self) -> None:
        with pytest.raises(ValueError):
            init_i18n({"no": {}})

    def test_shipped_copyright_interpolates(self) -> None:
        i18n = init_i18n()
        assert i18n.t("footer.copyright", language="no", guild="Guttakrutt").startswith("© Guttakrutt.")
