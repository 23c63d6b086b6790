import itertools

import pytest

from article_analyzer.utils.text_processing import (
    COUNTRY_TO_NATIONALITY,
    HeuristicLanguageDetector,
    LanguageDetector,
    detect_languages,
    extract_nationalities,
    map_api_response_to_prd,
)

ENGLISH_TEXT = (
    "The minister said that the talks in Brussels were productive and that the delegations "
    "had agreed to meet again before the end of the year with a plan for the region."
)
SPANISH_TEXT = (
    "El presidente de la comisión dijo que los acuerdos con las empresas son importantes "
    "para el futuro de la región y que la reunión fue un éxito para todos los países."
)


@pytest.mark.parametrize("countries", list(itertools.permutations(["USA", "United States", "America"])))
def test_american_variants_collapse_to_one_nationality(countries):
    assert extract_nationalities(list(countries)) == ["American"]


def test_extract_nationalities_keeps_first_seen_order():
    assert extract_nationalities(["France", "Germany", "france "]) == ["French", "German"]


def test_extract_nationalities_handles_chinese_and_substrings():
    assert extract_nationalities(["美国", "俄罗斯", "Republic of Kenya"]) == ["American", "Russian", "Kenyan"]


def test_extract_nationalities_drops_unknown_and_non_strings():
    assert extract_nationalities(["Atlantis", 42, None, "", "   ", "Japan"]) == ["Japanese"]
    assert extract_nationalities("France") == []
    assert extract_nationalities(None) == []


def test_country_table_is_immutable():
    with pytest.raises(TypeError):
        COUNTRY_TO_NATIONALITY["atlantis"] = "Atlantean"


def test_numeric_text_defaults_to_english():
    assert detect_languages("123 456 789") == ["English"]


def test_detect_languages_orders_by_score():
    assert detect_languages(ENGLISH_TEXT)[0] == "English"
    assert detect_languages(SPANISH_TEXT)[0] == "Spanish"


def test_detect_languages_scripts():
    assert detect_languages("中华人民共和国今天发布了新的经济政策") == ["Chinese"]
    assert detect_languages("これはとてもおもしろいほんです") == ["Japanese"]
    assert detect_languages("هذه مقالة باللغة العربية عن الاقتصاد") == ["Arabic"]


def test_detect_languages_returns_at_most_three():
    mixed = " ".join([ENGLISH_TEXT, SPANISH_TEXT, "中华人民共和国今天发布了新的经济政策", "これはとてもおもしろいほんです"])
    assert len(detect_languages(mixed)) == 3


def test_summary_list_joined_with_spaces():
    assert map_api_response_to_prd({"article_summary": ["A", "B"]}).article_summary == "A B"


def test_summary_falls_back_to_scalar_summary_then_empty():
    assert map_api_response_to_prd({"summary": "Short"}).article_summary == "Short"
    assert map_api_response_to_prd({}).article_summary == ""


def test_countries_preferred_over_nationalities():
    result = map_api_response_to_prd({"countries": ["Brazil"], "nationalities": ["Peru"]})
    assert result.nationalities == ["Brazilian"]

    result = map_api_response_to_prd({"nationalities": ["加拿大", "Mexico"]})
    assert result.nationalities == ["Canadian", "Mexican"]


def test_missing_language_uses_heuristic_over_original_text():
    result = map_api_response_to_prd(
        {"article_summary": ["Summary"], "countries": ["France", "Germany"]},
        original_text=SPANISH_TEXT,
    )

    assert result.nationalities == ["French", "German"]
    assert result.languages == detect_languages(SPANISH_TEXT)


def test_empty_language_list_counts_as_missing():
    result = map_api_response_to_prd({"language": []}, original_text=SPANISH_TEXT)
    assert result.languages == detect_languages(SPANISH_TEXT)


def test_languages_alias_preferred_over_language():
    result = map_api_response_to_prd({"languages": ["French"], "language": ["German"]})
    assert result.languages == ["French"]
    assert map_api_response_to_prd({"language": ["German"]}).languages == ["German"]


def test_languages_default_without_original_text():
    assert map_api_response_to_prd({}).languages == ["English"]


def test_malformed_payload_never_raises():
    result = map_api_response_to_prd(
        {
            "article_summary": 7,
            "countries": "France",
            "organizations": "UN",
            "people": [1, "Ada Lovelace"],
            "language": "English",
        }
    )
    assert result.article_summary == ""
    assert result.nationalities == []
    assert result.organizations == []
    assert result.people == ["Ada Lovelace"]
    assert result.languages == ["English"]

    assert map_api_response_to_prd(None).model_dump() == {
        "article_summary": "",
        "nationalities": [],
        "organizations": [],
        "people": [],
        "languages": ["English"],
    }


def test_custom_detector_is_used():
    class FixedDetector(LanguageDetector):
        def detect(self, text):
            return ["Klingon"]

    result = map_api_response_to_prd({}, original_text="anything", detector=FixedDetector())
    assert result.languages == ["Klingon"]


def test_detector_threshold_is_configurable():
    detector = HeuristicLanguageDetector(threshold=0)
    assert detector.detect("the cat") == ["English"]
    assert detector.score("the cat and the dog")["english"] == 3


def test_language_needs_more_than_five_matches():
    assert detect_languages("中华人民共") == ["English"]
    assert detect_languages("中华人民共和") == ["Chinese"]
