import pytest

from cartpilot.core.models import ProductCatalogEntry
from cartpilot.search import fuzzy
from cartpilot.search.catalog import ProductCatalog, load_catalog


def entry(entry_id, name, category="Dairy & Eggs", keywords=None):
    return ProductCatalogEntry(
        id=entry_id,
        name=name,
        category=category,
        keywords=tuple(keywords if keywords is not None else [name]),
    )


@pytest.fixture
def grocery_catalog():
    return load_catalog()


@pytest.fixture(autouse=True)
def clear_suggest_cache():
    fuzzy._cached_match.cache_clear()
    yield
    fuzzy._cached_match.cache_clear()


def test_levenshtein_basics():
    assert fuzzy.levenshtein("kitten", "sitting") == 3
    assert fuzzy.levenshtein("", "abc") == 3
    assert fuzzy.levenshtein("abc", "") == 3
    assert fuzzy.levenshtein("", "") == 0
    assert fuzzy.levenshtein("milk", "milk") == 0


def test_similarity_handles_empty_strings():
    assert fuzzy.similarity("", "") == 0.0
    assert fuzzy.similarity("milk", "") == 0.0
    assert fuzzy.similarity("milk", "silk") == pytest.approx(0.75)


def test_score_candidate_shortcuts_are_case_insensitive():
    assert fuzzy.score_candidate("MILK", "milk") == 1.0
    assert fuzzy.score_candidate("mil", "Milk") == 0.9
    assert fuzzy.score_candidate("milk", "Almond Milk") == 0.7
    assert fuzzy.score_candidate("", "Milk") == 0.0
    assert fuzzy.score_candidate("bred", "bread") == pytest.approx(0.8)


def test_exact_match_ranks_first_with_full_score():
    catalog = [entry("1", "Whole Milk"), entry("2", "Milk", keywords=["milk", "semi"])]
    results = fuzzy.match("milk", catalog)
    assert results[0].entry.id == "2"
    assert results[0].score == 1.0


def test_prefix_match_outranks_substring_match():
    catalog = [entry("1", "Almond Milk", keywords=["Almond Milk", "milk"]), entry("2", "Milk")]
    results = fuzzy.match("mil", catalog)
    assert [result.entry.name for result in results[:2]] == ["Milk", "Almond Milk"]
    assert results[0].score == 0.9
    assert results[1].score < 0.9


def test_nonsense_query_returns_nothing(grocery_catalog):
    assert fuzzy.match("xyz123", grocery_catalog) == []


def test_no_result_at_or_below_min_score(grocery_catalog):
    results = fuzzy.match("chese", grocery_catalog, min_score=0.5)
    assert results
    assert all(result.score > 0.5 for result in results)


def test_limit_keeps_highest_scores():
    catalog = [entry(str(i), f"Cheese {i}", keywords=["cheese"]) for i in range(10)]
    catalog.append(entry("best", "Cheese"))
    results = fuzzy.match("cheese", catalog, limit=3)
    assert len(results) == 3
    assert results[0].entry.id == "best"
    assert [result.entry.id for result in results[1:]] == ["0", "1"]


def test_short_or_empty_query_returns_empty(grocery_catalog):
    assert fuzzy.match("", grocery_catalog) == []
    assert fuzzy.match("m", grocery_catalog) == []
    assert fuzzy.match("  m ", grocery_catalog) == []
    assert fuzzy.match("milk", grocery_catalog, limit=0) == []


def test_match_is_deterministic(grocery_catalog):
    first = fuzzy.match("bre", grocery_catalog)
    second = fuzzy.match("bre", grocery_catalog)
    assert first == second
    assert [result.entry.id for result in first] == [result.entry.id for result in second]


def test_keyword_substring_scores_above_weighted_floor():
    cheddar = ProductCatalogEntry(
        id="8",
        name="Cheddar Cheese",
        category="Dairy & Eggs",
        keywords=("Cheddar Cheese", "cheese", "cheddar"),
    )
    results = fuzzy.match("chees", [cheddar], min_score=0.3)
    assert len(results) == 1
    assert results[0].score >= 0.7 * 0.9


def test_category_reference_surfaces_entries():
    catalog = [entry("1", "Sourdough", category="Bakery", keywords=["loaf"])]
    results = fuzzy.match("bakery", catalog)
    assert results[0].score == pytest.approx(0.8)


def test_nameless_entry_fails_fast():
    with pytest.raises(ValueError):
        fuzzy.match("milk", [entry("1", "")])


def test_suggest_memoizes_per_catalog_version():
    v1 = ProductCatalog.from_records([{"id": "1", "name": "Milk", "category": "Dairy"}], version="v1")
    v2 = ProductCatalog.from_records([{"id": "1", "name": "Mild Salsa", "category": "Sauces"}], version="v2")

    assert [r.entry.name for r in fuzzy.suggest("milk", v1)] == ["Milk"]
    assert fuzzy.suggest("milk", v1) == fuzzy.match("milk", v1)
    assert fuzzy._cached_match.cache_info().hits == 1

    assert [r.entry.name for r in fuzzy.suggest("milk", v2)] != ["Milk"]
    assert fuzzy._cached_match.cache_info().misses == 2
