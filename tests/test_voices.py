"""
Tests for VoiceCatalog selection and fallback.
"""
from narration.voices import Voice, VoiceCatalog


CATALOG = [Voice("John", "en-US"), Voice("Emma (female)", "en-GB")]


def test_select_matches_locale_and_gender():
    catalog = VoiceCatalog(CATALOG)
    voice = catalog.select("en-GB", "female")
    assert voice == CATALOG[1]
    assert catalog.selected == CATALOG[1]


def test_select_falls_back_to_first_entry():
    catalog = VoiceCatalog(CATALOG)
    assert catalog.select("fr-FR", "male") == CATALOG[0]
    assert catalog.selected == CATALOG[0]


def test_gender_hint_is_case_insensitive():
    catalog = VoiceCatalog([Voice("Google UK English Female", "en-GB")])
    assert catalog.select("en-GB", "FEMALE").name == "Google UK English Female"


def test_locale_must_match_exactly():
    catalog = VoiceCatalog([Voice("Anna female", "en-AU"), Voice("Kate female", "en-GB")])
    assert catalog.select("en-GB", "female").name == "Kate female"


def test_empty_catalog_returns_none():
    catalog = VoiceCatalog()
    assert catalog.select("en-US", "male") is None
    assert catalog.selected is None


def test_refresh_replaces_catalog():
    catalog = VoiceCatalog(CATALOG)
    catalog.refresh([Voice("Zoe", "en-AU")])
    assert catalog.voices == [Voice("Zoe", "en-AU")]


def test_selection_is_a_lookup_key():
    catalog = VoiceCatalog(CATALOG)
    catalog.select("en-GB", "female")

    catalog.refresh([Voice("Emma (female)", "en-GB", default=True)])
    assert catalog.selected == Voice("Emma (female)", "en-GB", default=True)

    catalog.refresh([Voice("John", "en-US")])
    assert catalog.selected is None


def test_voice_from_provider_listing():
    voice = Voice.from_dict({"name": "Samantha", "lang": "en-US", "default": True})
    assert voice == Voice("Samantha", "en-US", default=True)
    assert voice.to_dict() == {"name": "Samantha", "locale": "en-US", "default": True}
