import re
from uuid import UUID

import pytest
from sqlalchemy.dialects import postgresql

from bookstore import DoesNotExist
from bookstore import Filter
from bookstore.gateways import BookSQLGateway
from bookstore.sql.testing import FakeSyncSQLDatabase

BOOK_ID = UUID("00000000-0000-0000-0000-00000000000b")
PUBLISHER_ID = UUID("00000000-0000-0000-0000-00000000000f")
AUTHOR_ID = UUID("00000000-0000-0000-0000-00000000000a")
REVIEW_ID = UUID("00000000-0000-0000-0000-00000000000c")

PUBLISHER = {"id": PUBLISHER_ID, "name": "Ace"}
AUTHOR = {"id": AUTHOR_ID, "name": "Frank Herbert"}
REVIEW = {"id": REVIEW_ID, "comment": "Great", "book_id": BOOK_ID}
LINK = {"book_id": BOOK_ID, "author_id": AUTHOR_ID}


def book_row():
    return {"id": BOOK_ID, "title": "Dune", "publisher_id": PUBLISHER_ID}


BOOK = {
    "id": BOOK_ID,
    "title": "Dune",
    "publisher": PUBLISHER,
    "authors": [AUTHOR],
    "review": REVIEW,
}


def summarize(query) -> str:
    """Reduce a query to its verb and table, e.g. 'INSERT book'"""
    sql = str(query.compile(dialect=postgresql.dialect()))
    (table,) = re.search(r"(?:FROM|INTO|UPDATE) (\w+)", sql).groups()
    return f"{sql.split()[0]} {table}"


@pytest.fixture
def provider():
    return FakeSyncSQLDatabase()


@pytest.fixture
def book_gateway(provider):
    return BookSQLGateway(provider)


def test_add(book_gateway, provider):
    provider.result.side_effect = [
        [book_row()],
        [],
        [REVIEW],
        [],
        [LINK],
        [PUBLISHER],
        [LINK],
        [AUTHOR],
        [REVIEW],
    ]
    actual = book_gateway.add(
        {
            "id": None,
            "title": "Dune",
            "publisher": PUBLISHER,
            "authors": [AUTHOR],
            "review": {"id": None, "comment": "Great", "book_id": None},
        }
    )

    assert actual == BOOK
    # everything happened in one transaction
    (queries,) = provider.queries
    assert [summarize(x) for x in queries] == [
        "INSERT book",
        "SELECT review",
        "INSERT review",
        "SELECT book_author",
        "INSERT book_author",
        "SELECT publisher",
        "SELECT book_author",
        "SELECT author",
        "SELECT review",
    ]


def test_add_inserts_publisher_id(book_gateway, provider):
    provider.result.side_effect = [[book_row()], [PUBLISHER], [], []]
    book_gateway.add({"title": "Dune", "publisher": PUBLISHER})

    (queries,) = provider.queries
    assert queries[0].compile(dialect=postgresql.dialect()).params == {
        "title": "Dune",
        "publisher_id": PUBLISHER_ID,
    }


def test_filter(book_gateway, provider):
    provider.result.side_effect = [
        [book_row()],
        [PUBLISHER],
        [LINK],
        [AUTHOR],
        [REVIEW],
    ]
    actual = book_gateway.filter([Filter(field="title", values=["Dune"])])

    assert actual == [BOOK]
    (queries,) = provider.queries
    assert [summarize(x) for x in queries] == [
        "SELECT book",
        "SELECT publisher",
        "SELECT book_author",
        "SELECT author",
        "SELECT review",
    ]


def test_filter_no_results(book_gateway, provider):
    assert book_gateway.filter([]) == []

    (queries,) = provider.queries
    assert [summarize(x) for x in queries] == ["SELECT book"]


def test_filter_without_relations(book_gateway, provider):
    provider.result.side_effect = [
        [{"id": BOOK_ID, "title": "Dune", "publisher_id": None}],
        [],
        [],
    ]
    actual = book_gateway.get(BOOK_ID)

    assert actual == {
        "id": BOOK_ID,
        "title": "Dune",
        "publisher": None,
        "authors": [],
        "review": None,
    }
    (queries,) = provider.queries
    assert [summarize(x) for x in queries] == [
        "SELECT book",
        "SELECT book_author",
        "SELECT review",
    ]


@pytest.mark.parametrize("deleted,expected", [([{"id": BOOK_ID}], True), ([], False)])
def test_remove(book_gateway, provider, deleted, expected):
    provider.result.side_effect = [[LINK], [{"id": REVIEW_ID}], deleted]
    assert book_gateway.remove(BOOK_ID) is expected

    (queries,) = provider.queries
    assert [summarize(x) for x in queries] == [
        "DELETE book_author",
        "DELETE review",
        "DELETE book",
    ]


def test_update(book_gateway, provider):
    provider.result.side_effect = [
        [book_row()],
        [REVIEW],
        [LINK],
        [PUBLISHER],
        [LINK],
        [AUTHOR],
        [REVIEW],
    ]
    assert book_gateway.update(BOOK) == BOOK

    # nothing changed in the review and authors, so only reads
    (queries,) = provider.queries
    assert [summarize(x) for x in queries] == [
        "UPDATE book",
        "SELECT review",
        "SELECT book_author",
        "SELECT publisher",
        "SELECT book_author",
        "SELECT author",
        "SELECT review",
    ]


def test_update_does_not_exist(book_gateway, provider):
    with pytest.raises(DoesNotExist):
        book_gateway.update(BOOK)

    (queries,) = provider.queries
    assert [summarize(x) for x in queries] == ["UPDATE book"]
