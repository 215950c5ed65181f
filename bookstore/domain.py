# (c) Nelen & Schuurmans

from typing import List
from typing import Optional

from pydantic import Field
from pydantic import field_validator

from bookstore.base.domain import Id
from bookstore.base.domain import RootEntity
from bookstore.base.domain import SyncRepository

__all__ = [
    "Author",
    "AuthorRepository",
    "Book",
    "BookRepository",
    "Publisher",
    "PublisherRepository",
    "Review",
    "ReviewRepository",
]


class Publisher(RootEntity):
    name: str = Field(min_length=1)


class Author(RootEntity):
    name: str = Field(min_length=1)


class Review(RootEntity):
    comment: str
    book_id: Id | None = None


class Book(RootEntity):
    """A book, together with its publisher, its authors and the review it owns.

    The authors have no order. The review lives and dies with the book.
    """

    title: str = Field(min_length=1)
    publisher: Publisher | None = None
    authors: List[Author] = []
    review: Review | None = None

    @field_validator("authors")
    @classmethod
    def drop_duplicate_authors(cls, value: List[Author]) -> List[Author]:
        result: List[Author] = []
        for author in value:
            if author not in result:
                result.append(author)
        return result

    def __hash__(self):
        if self.id is not None:
            return super().__hash__()
        return hash(self.__class__) + hash(
            (self.title, self.publisher, frozenset(self.authors), self.review)
        )

    @property
    def author_ids(self) -> frozenset[Id]:
        return frozenset(x.id for x in self.authors if x.id is not None)


class PublisherRepository(SyncRepository[Publisher]):
    def by_name(self, name: str) -> Optional[Publisher]:
        result = self.by("name", name)
        return result[0] if result else None


class AuthorRepository(SyncRepository[Author]):
    pass


class ReviewRepository(SyncRepository[Review]):
    def by_book(self, book_id: Id) -> Optional[Review]:
        result = self.by("book_id", book_id)
        return result[0] if result else None


class BookRepository(SyncRepository[Book]):
    def by_title(self, title: str) -> Optional[Book]:
        result = self.by("title", title)
        return result[0] if result else None

    def by_publisher(self, publisher_id: Id) -> List[Book]:
        return self.by("publisher_id", publisher_id)
