"""
Unit tests for peer_assessment/ingest/validators.py.

Covers identifier, email, unit, question-code and score predicates plus
the email → id → email roundtrip.
"""

from __future__ import annotations

import pytest

from peer_assessment.ingest.validators import (
    clean_cell,
    derive_email_from_id,
    extract_student_id_from_email,
    is_active_status,
    is_valid_email,
    is_valid_question_id,
    is_valid_score,
    is_valid_student_id,
    is_valid_unit,
    normalize_unit,
    parse_score,
)


class TestCleanCell:

    def test_strips_whitespace(self):
        assert clean_cell("  A123  ") == "A123"

    def test_none_and_nan_are_blank(self):
        assert clean_cell(None) == ""
        assert clean_cell(float("nan")) == ""

    def test_numbers_become_strings(self):
        assert clean_cell(3) == "3"


class TestStudentId:

    @pytest.mark.parametrize("student_id", ["A123456789", "Z000000001"])
    def test_valid(self, student_id):
        assert is_valid_student_id(student_id)

    @pytest.mark.parametrize("student_id", [
        "a123456789",      # lowercase letter
        "A12345678",       # eight digits
        "A1234567890",     # ten digits
        "AB23456789",      # two letters
        " A123456789",     # leading space
        "",
        None,
        123456789,
    ])
    def test_invalid(self, student_id):
        assert not is_valid_student_id(student_id)


class TestEmail:

    def test_institutional_email_valid(self):
        assert is_valid_email("a123456789@mail.shu.edu.tw")

    def test_case_insensitive(self):
        assert is_valid_email("A123456789@MAIL.SHU.EDU.TW")

    @pytest.mark.parametrize("email", [
        "a123456789@gmail.com",
        "a12345678@mail.shu.edu.tw",
        "[NoValidEmailFor_A123456789]",
        "",
        None,
    ])
    def test_invalid(self, email):
        assert not is_valid_email(email)

    def test_extract_id_uppercases(self):
        assert extract_student_id_from_email("b987654321@mail.shu.edu.tw") == "B987654321"

    def test_extract_from_invalid_is_none(self):
        assert extract_student_id_from_email("someone@example.com") is None

    def test_derive_email_from_id(self):
        assert derive_email_from_id("C000000042") == "c000000042@mail.shu.edu.tw"

    def test_derive_email_from_bad_id_is_none(self):
        assert derive_email_from_id("C42") is None

    @pytest.mark.parametrize("email", [
        "a123456789@mail.shu.edu.tw",
        "z000000000@mail.shu.edu.tw",
        "m555555555@mail.shu.edu.tw",
    ])
    def test_email_id_email_roundtrip_is_idempotent(self, email):
        once = derive_email_from_id(extract_student_id_from_email(email))
        twice = derive_email_from_id(extract_student_id_from_email(once))
        assert once == email
        assert twice == once


class TestStatus:

    @pytest.mark.parametrize("status", ["active", "ACTIVE", "Enrolled", " enrolled "])
    def test_active(self, status):
        assert is_active_status(status)

    @pytest.mark.parametrize("status", ["withdrawn", "inactive", ""])
    def test_inactive(self, status):
        assert not is_active_status(status)


class TestUnits:

    @pytest.mark.parametrize("raw, expected", [
        ("A", "A"),
        ("unit b", "B"),
        ("UNIT C", "C"),
        ("  d ", "D"),
        ("UNIT", "UNIT"),
        ("", ""),
    ])
    def test_normalize_unit(self, raw, expected):
        assert normalize_unit(raw) == expected

    @pytest.mark.parametrize("unit", ["A", "B", "C", "D"])
    def test_valid_units(self, unit):
        assert is_valid_unit(unit)

    @pytest.mark.parametrize("unit", ["E", "AB", "", "UNIT A", None])
    def test_invalid_units(self, unit):
        assert not is_valid_unit(unit)


class TestQuestionId:

    @pytest.mark.parametrize("qid", ["Q1", "Q01", "q12"])
    def test_valid(self, qid):
        assert is_valid_question_id(qid)

    @pytest.mark.parametrize("qid", ["Q", "Q123", "X1", "", None])
    def test_invalid(self, qid):
        assert not is_valid_question_id(qid)


class TestScores:

    @pytest.mark.parametrize("raw, expected", [
        ("3", 3.0),
        (" 2.5 ", 2.5),
        (4, 4.0),
    ])
    def test_parse_numeric(self, raw, expected):
        assert parse_score(raw) == expected

    @pytest.mark.parametrize("raw", ["", "abc", "nan", "inf", "-inf", None])
    def test_parse_rejects_non_finite_and_text(self, raw):
        assert parse_score(raw) is None

    @pytest.mark.parametrize("value", [1.0, 2.5, 4.0, 3])
    def test_in_range(self, value):
        assert is_valid_score(value)

    @pytest.mark.parametrize("value", [0.99, 4.01, float("nan"), float("inf"), True, "3"])
    def test_out_of_range_or_wrong_type(self, value):
        assert not is_valid_score(value)
