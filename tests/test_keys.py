import json

import pytest

from sitelog.services.keys import catalog_key, catalog_sort_key, company_sort_key, spec_number


def test_key_is_json_array_of_name_and_spec():
    assert json.loads(catalog_key("Cement", "40kg")) == ["Cement", "40kg"]


def test_separator_characters_cannot_forge_collisions():
    # "a-b" + "c" vs "a" + "b-c" collide under naive dash joining
    assert catalog_key("a-b", "c") != catalog_key("a", "b-c")
    assert catalog_key('x","y', "z") != catalog_key("x", 'y","z')


def test_null_spec_differs_from_empty_spec():
    assert catalog_key("Crane", None) != catalog_key("Crane", "")


def test_non_ascii_kept_verbatim():
    assert "시멘트" in catalog_key("시멘트", "40kg")


def test_non_string_name_fails_fast():
    with pytest.raises(TypeError):
        catalog_key(None, "40kg")
    with pytest.raises(TypeError):
        catalog_key("Pipe", 100)


@pytest.mark.parametrize(
    "spec,expected",
    [("100", 100), ("D50", 50), ("25x40", 25), ("none", 0), ("", 0), (None, 0)],
)
def test_spec_number_uses_first_digit_run(spec, expected):
    assert spec_number(spec) == expected


def test_catalog_sort_is_numeric_within_name():
    specs = ["100", "50", "8", "abc"]
    ordered = sorted(specs, key=lambda s: catalog_sort_key("Pipe", s))
    assert ordered == ["abc", "8", "50", "100"]


def test_catalog_sort_name_first():
    rows = [("Rebar", "10"), ("Cement", "40kg"), ("Cement", "25kg")]
    ordered = sorted(rows, key=lambda r: catalog_sort_key(*r))
    assert ordered == [("Cement", "25kg"), ("Cement", "40kg"), ("Rebar", "10")]


def test_company_sort_explicit_order_then_alphabetical():
    companies = [("Beta", "Paint", None), ("Alpha", "Steel", None), ("Zeta", "Electric", 1), ("Gamma", "Civil", 2)]
    ordered = [c[0] for c in sorted(companies, key=lambda c: company_sort_key(*c))]
    assert ordered == ["Zeta", "Gamma", "Alpha", "Beta"]
