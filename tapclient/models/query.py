"""
Query abstractions

A query is anything exposing a query language and the query text. ADQL is
the only language known by name; services that accept other languages can be
addressed with QueryLanguage.other("my-language").
"""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class QueryLanguage:
    """The language of a query, sent to the service as the LANG parameter."""

    identifier: str

    @classmethod
    def other(cls, identifier: str) -> "QueryLanguage":
        if not identifier:
            raise ValueError("Query language identifier must not be empty")
        return cls(identifier)

    def __str__(self) -> str:
        return self.identifier


QueryLanguage.ADQL = QueryLanguage("adql")


@runtime_checkable
class TAPQuery(Protocol):
    """A query that can be executed on a TAP service."""

    @property
    def query_language(self) -> QueryLanguage: ...

    @property
    def query(self) -> str: ...


@dataclass(frozen=True)
class ADQLQuery:
    """A plain ADQL query string."""

    query: str

    @property
    def query_language(self) -> QueryLanguage:
        return QueryLanguage.ADQL


@dataclass(frozen=True)
class RawQuery:
    """A query in an arbitrary language identified by name."""

    query: str
    language: str

    @property
    def query_language(self) -> QueryLanguage:
        if self.language.lower() == QueryLanguage.ADQL.identifier:
            return QueryLanguage.ADQL
        return QueryLanguage.other(self.language)


__all__ = ["QueryLanguage", "TAPQuery", "ADQLQuery", "RawQuery"]
