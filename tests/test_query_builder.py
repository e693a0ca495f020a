"""Tests for QueryBuilder expression building."""

from __future__ import annotations

import pytest

from physio_pubmed.application.search import PT_MESH_TERMS, QueryBuilder
from physio_pubmed.domain.entities import DateRange, SearchRequest, StudyType

PT_CONTEXT = (
    '("Physical Therapy Modalities"[MeSH] OR "Physical Therapy Specialty"[MeSH] OR "Exercise Therapy"[MeSH])'
)


@pytest.fixture
def builder():
    return QueryBuilder(current_year=lambda: 2024)


class TestContextClause:
    def test_free_text_is_wrapped(self, builder):
        expression = builder.build(SearchRequest(query_text="knee pain"))
        assert expression == f"(knee pain) AND {PT_CONTEXT}"

    def test_query_is_trimmed(self, builder):
        assert builder.build(SearchRequest(query_text="  knee pain  ")).startswith("(knee pain)")

    def test_field_tagged_query_left_alone(self, builder):
        query = '"Low Back Pain"[MeSH] AND exercise'
        assert builder.build(SearchRequest(query_text=query)) == query

    def test_bracket_query_left_alone(self, builder):
        assert builder.build(SearchRequest(query_text="stroke[tiab]")) == "stroke[tiab]"

    def test_mesh_word_query_left_alone(self, builder):
        assert builder.build(SearchRequest(query_text="MeSH stroke")) == "MeSH stroke"

    def test_context_uses_first_three_canonical_terms(self):
        assert PT_CONTEXT == "(" + " OR ".join(PT_MESH_TERMS[:3]) + ")"


class TestFilterClauses:
    @pytest.mark.parametrize(
        ("study_type", "label"),
        [
            (StudyType.RCT, "Randomized Controlled Trial"),
            (StudyType.CLINICAL_TRIAL, "Clinical Trial"),
            (StudyType.REVIEW, "Review"),
            (StudyType.META_ANALYSIS, "Meta-Analysis"),
        ],
    )
    def test_study_type_clause(self, builder, study_type, label):
        expression = builder.build(SearchRequest(query_text="gait", study_type=study_type))
        assert expression.endswith(f' AND "{label}"[Publication Type]')

    def test_all_study_types_adds_nothing(self, builder):
        assert "[Publication Type]" not in builder.build(SearchRequest(query_text="gait"))

    def test_study_type_accepts_plain_string(self, builder):
        expression = builder.build(SearchRequest(query_text="gait", study_type="rct"))
        assert '"Randomized Controlled Trial"[Publication Type]' in expression

    def test_closed_date_range(self, builder):
        request = SearchRequest(query_text="gait", date_range=DateRange(2020, 2022))
        assert builder.build(request).endswith(' AND ("2020"[DP] : "2022"[DP])')

    def test_open_date_range_uses_current_year(self, builder):
        request = SearchRequest(query_text="gait", date_range=DateRange(2019))
        assert builder.build(request).endswith(' AND ("2019"[DP] : "2024"[DP])')

    def test_require_abstract(self, builder):
        request = SearchRequest(query_text="gait", require_abstract=True)
        assert builder.build(request).endswith(" AND hasabstract[text]")

    def test_clause_order(self, builder):
        request = SearchRequest(
            query_text="knee pain",
            study_type=StudyType.RCT,
            date_range=DateRange(2020, 2024),
            require_abstract=True,
        )
        assert builder.build(request) == (
            f"(knee pain) AND {PT_CONTEXT}"
            ' AND "Randomized Controlled Trial"[Publication Type]'
            ' AND ("2020"[DP] : "2024"[DP])'
            " AND hasabstract[text]"
        )


class TestPurity:
    def test_same_request_same_expression(self, builder):
        request = SearchRequest(
            query_text="shoulder impingement",
            study_type=StudyType.META_ANALYSIS,
            date_range=DateRange(2015),
            require_abstract=True,
        )
        assert builder.build(request) == builder.build(request)
        assert builder.build(request) == QueryBuilder(current_year=lambda: 2024).build(request)

    def test_equal_requests_equal_expressions(self, builder):
        a = SearchRequest(query_text="ankle sprain", max_results=10)
        b = SearchRequest(query_text="ankle sprain", max_results=50, offset=20)
        # Paging does not change the expression
        assert builder.build(a) == builder.build(b)
