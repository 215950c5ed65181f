# (c) Nelen & Schuurmans

from typing import List
from typing import Type

from bookstore.base.domain import Filter
from bookstore.base.domain import Id
from bookstore.base.domain import Json
from bookstore.base.infrastructure import InMemorySyncDatabase
from bookstore.base.infrastructure import InMemorySyncGateway
from bookstore.base.infrastructure import Mapper
from bookstore.base.infrastructure import TableSyncGateway
from bookstore.sql import SyncSQLGateway

from .sql_model import author
from .sql_model import book
from .sql_model import book_author
from .sql_model import metadata
from .sql_model import publisher
from .sql_model import review

__all__ = [
    "AuthorInMemoryGateway",
    "AuthorSQLGateway",
    "BookAuthorInMemoryGateway",
    "BookAuthorSQLGateway",
    "BookInMemoryGateway",
    "BookSQLGateway",
    "PublisherInMemoryGateway",
    "PublisherSQLGateway",
    "ReviewInMemoryGateway",
    "ReviewSQLGateway",
    "create_in_memory_database",
]


class BookMapper(Mapper):
    def to_external(self, internal: Json) -> Json:
        result = {k: internal[k] for k in ("id", "title") if k in internal}
        if "publisher" in internal:
            publisher = internal["publisher"]
            result["publisher_id"] = None if publisher is None else publisher["id"]
        return result


class BookGateway(TableSyncGateway):
    """Reads and writes a book together with its publisher, authors and review.

    A book record is nested: {"id", "title", "publisher", "authors", "review"}.
    Writing a book writes the review it owns and its rows in the association table
    with authors, in the same transaction. Publishers and authors are only read.
    Removing a book removes its review and association rows, but never publishers
    or authors.
    """

    mapper = BookMapper()
    publisher_gateway: Type[TableSyncGateway]
    author_gateway: Type[TableSyncGateway]
    review_gateway: Type[TableSyncGateway]
    book_author_gateway: Type[TableSyncGateway]

    def get_related(self, items: List[Json]) -> None:
        if not items:
            return
        self.sibling(self.publisher_gateway)._get_related_many_to_one(
            items, field_name="publisher", fk_name="publisher_id"
        )
        self.sibling(self.author_gateway)._get_related_many_to_many(
            items,
            field_name="authors",
            link_gateway=self.sibling(self.book_author_gateway),
            fk_name="book_id",
            other_fk_name="author_id",
        )
        self.sibling(self.review_gateway)._get_related_one_to_one(
            items, field_name="review", fk_name="book_id"
        )

    def set_related(self, item: Json, result: Json) -> None:
        self.sibling(self.review_gateway)._set_related_one_to_one(
            item, result, field_name="review", fk_name="book_id"
        )
        self.sibling(self.book_author_gateway)._set_related_many_to_many(
            item,
            result,
            field_name="authors",
            fk_name="book_id",
            other_fk_name="author_id",
        )
        # read back what was stored, within the same transaction
        self.get_related([result])

    def remove_related(self, id: Id) -> None:
        by_book = [Filter(field="book_id", values=[id])]
        self.sibling(self.book_author_gateway).remove_by(by_book)
        self.sibling(self.review_gateway).remove_by(by_book)


class PublisherSQLGateway(SyncSQLGateway, table=publisher):
    pass


class AuthorSQLGateway(SyncSQLGateway, table=author):
    pass


class ReviewSQLGateway(SyncSQLGateway, table=review):
    pass


class BookAuthorSQLGateway(SyncSQLGateway, table=book_author):
    pass


class BookSQLGateway(BookGateway, SyncSQLGateway, table=book, has_related=True):
    publisher_gateway = PublisherSQLGateway
    author_gateway = AuthorSQLGateway
    review_gateway = ReviewSQLGateway
    book_author_gateway = BookAuthorSQLGateway


class PublisherInMemoryGateway(InMemorySyncGateway, table=publisher):
    pass


class AuthorInMemoryGateway(InMemorySyncGateway, table=author):
    pass


class ReviewInMemoryGateway(InMemorySyncGateway, table=review):
    pass


class BookAuthorInMemoryGateway(InMemorySyncGateway, table=book_author):
    pass


class BookInMemoryGateway(
    BookGateway, InMemorySyncGateway, table=book, has_related=True
):
    publisher_gateway = PublisherInMemoryGateway
    author_gateway = AuthorInMemoryGateway
    review_gateway = ReviewInMemoryGateway
    book_author_gateway = BookAuthorInMemoryGateway


def create_in_memory_database() -> InMemorySyncDatabase:
    return InMemorySyncDatabase(metadata)
