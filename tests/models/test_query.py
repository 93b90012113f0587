"""
Tests for tapclient.models.query and tapclient.models.jobs
"""

import pytest
from pydantic import ValidationError

from tapclient.models import ADQLQuery, ParallelismSettings, QueryLanguage, QueryRequest, RawQuery, TAPQuery


class TestQueries:
    """Test query value objects."""

    def test_adql_query(self):
        query = ADQLQuery("SELECT 1")
        assert query.query == "SELECT 1"
        assert query.query_language is QueryLanguage.ADQL
        assert str(query.query_language) == "adql"
        assert isinstance(query, TAPQuery)

    def test_raw_query_recognizes_adql(self):
        assert RawQuery("SELECT 1", "ADQL").query_language is QueryLanguage.ADQL

    def test_raw_query_other_language(self):
        language = RawQuery("x", "PQL").query_language
        assert language == QueryLanguage.other("PQL")
        assert language.identifier == "PQL"

    def test_other_rejects_empty_identifier(self):
        with pytest.raises(ValueError):
            QueryLanguage.other("")
        with pytest.raises(ValueError):
            RawQuery("x", "").query_language


class TestRequestModels:
    """Test the gateway request schemas."""

    def test_query_request_defaults(self):
        request = QueryRequest(query="SELECT 1")
        assert request.language == "adql"
        assert request.id is None
        assert request.parameters == {}
        assert request.timeout is None

    @pytest.mark.parametrize("payload", [{"query": ""}, {"query": "SELECT 1", "timeout": 0}])
    def test_query_request_validation(self, payload):
        with pytest.raises(ValidationError):
            QueryRequest(**payload)

    def test_parallelism_must_be_positive(self):
        assert ParallelismSettings(max_parallel=1).max_parallel == 1
        with pytest.raises(ValidationError):
            ParallelismSettings(max_parallel=0)
