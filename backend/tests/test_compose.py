"""
Query composition helper tests.
"""

import pytest

from babyshop.db.compose import Conditions, like, page_window, placeholders, total_pages


class TestConditions:

    def test_and_join_keeps_params_in_marker_order(self):
        where = Conditions("p.IsActive = 1")
        where.add("p.CategoryId = ?", 3).add("p.Name LIKE ?", "%lait%")
        assert where.sql == "p.IsActive = 1 AND p.CategoryId = ? AND p.Name LIKE ?"
        assert where.params == [3, "%lait%"]

    def test_or_join(self):
        where = Conditions(operator="OR")
        where.add("(a LIKE ? OR b LIKE ?)", "%x%", "%x%")
        where.add("(a LIKE ? OR b LIKE ?)", "%y%", "%y%")
        assert where.sql == "(a LIKE ? OR b LIKE ?) OR (a LIKE ? OR b LIKE ?)"
        assert where.params == ["%x%", "%x%", "%y%", "%y%"]

    def test_empty_and_matches_everything(self):
        assert Conditions().sql == "1 = 1"

    def test_empty_or_matches_nothing(self):
        assert Conditions(operator="OR").sql == "1 = 0"

    def test_marker_value_mismatch_rejected(self):
        with pytest.raises(ValueError):
            Conditions().add("a = ? AND b = ?", 1)

    def test_params_returns_copy(self):
        where = Conditions().add("a = ?", 1)
        where.params.append(2)
        assert where.params == [1]


def test_placeholders():
    assert placeholders(3) == "?, ?, ?"
    assert placeholders(1) == "?"


def test_like():
    assert like("bib") == "%bib%"


class TestPaging:

    def test_first_page(self):
        assert page_window(1, 20) == (0, 20)

    def test_third_page(self):
        assert page_window(3, 10) == (20, 10)

    def test_total_pages_rounds_up(self):
        assert total_pages(41, 20) == 3
        assert total_pages(40, 20) == 2
        assert total_pages(0, 20) == 0

    def test_total_pages_zero_limit(self):
        assert total_pages(10, 0) == 0
