# (c) Nelen & Schuurmans

import logging
from typing import AbstractSet
from typing import List
from typing import Optional
from typing import Union

from bookstore.base.application import SyncManage
from bookstore.base.domain import Id
from bookstore.base.domain import Json
from bookstore.base.domain import ReferenceNotFound
from bookstore.base.domain import ValueObject

from .domain import Author
from .domain import AuthorRepository
from .domain import Book
from .domain import BookRepository
from .domain import Publisher
from .domain import PublisherRepository
from .domain import Review
from .domain import ReviewRepository
from .gateways import AuthorSQLGateway
from .gateways import BookSQLGateway
from .gateways import PublisherSQLGateway
from .gateways import ReviewSQLGateway

__all__ = ["BookInput", "ManageAuthor", "ManageBook", "ManagePublisher", "ManageReview"]

logger = logging.getLogger(__name__)


class BookInput(ValueObject):
    title: str
    publisher_id: Id
    author_ids: frozenset[Id] = frozenset()
    review_comment: str


class ManagePublisher(SyncManage[Publisher]):
    def __init__(self, repo: Optional[PublisherRepository] = None):
        if repo is None:
            repo = PublisherRepository(PublisherSQLGateway())
        self.repo = repo


class ManageAuthor(SyncManage[Author]):
    def __init__(self, repo: Optional[AuthorRepository] = None):
        if repo is None:
            repo = AuthorRepository(AuthorSQLGateway())
        self.repo = repo


class ManageReview(SyncManage[Review]):
    def __init__(self, repo: Optional[ReviewRepository] = None):
        if repo is None:
            repo = ReviewRepository(ReviewSQLGateway())
        self.repo = repo


class ManageBook(SyncManage[Book]):
    """Create, list and delete books with their review.

    A book is always created together with its review. The publisher must exist.
    Author ids that do not exist are dropped, unless ``strict_authors`` is set.
    """

    repo: BookRepository

    def __init__(
        self,
        repo: Optional[BookRepository] = None,
        publisher_repo: Optional[PublisherRepository] = None,
        author_repo: Optional[AuthorRepository] = None,
    ):
        self.repo = repo or BookRepository(BookSQLGateway())
        self.publisher_repo = publisher_repo or PublisherRepository(
            PublisherSQLGateway()
        )
        self.author_repo = author_repo or AuthorRepository(AuthorSQLGateway())

    def create(
        self, values: Union[BookInput, Json], strict_authors: bool = False
    ) -> Book:
        if not isinstance(values, BookInput):
            values = BookInput.create(**values)

        publisher = self.publisher_repo.find(values.publisher_id)
        if publisher is None:
            raise ReferenceNotFound("publisher", values.publisher_id)

        authors = self.author_repo.all_by_id(values.author_ids)
        missing = values.author_ids - {x.id for x in authors}
        if missing and strict_authors:
            raise ReferenceNotFound("author", *sorted(missing, key=str))
        elif missing:
            logger.warning(
                "Dropped unknown author ids %s from book '%s'",
                ", ".join(sorted(str(x) for x in missing)),
                values.title,
            )

        book = Book.create(
            title=values.title,
            publisher=publisher,
            authors=authors,
            review=Review.create(comment=values.review_comment),
        )
        # the review and the author associations are saved in the same transaction
        book = self.repo.save(book)
        logger.info("Created book %s ('%s')", book.id, book.title)
        return book

    def create_book(
        self,
        title: str,
        publisher_id: Id,
        author_ids: AbstractSet[Id],
        review_comment: str,
        strict_authors: bool = False,
    ) -> Book:
        return self.create(
            {
                "title": title,
                "publisher_id": publisher_id,
                "author_ids": author_ids,
                "review_comment": review_comment,
            },
            strict_authors=strict_authors,
        )

    def list_books(self) -> List[Book]:
        return self.list()

    def delete_book(self, id: Id) -> bool:
        """Delete a book with its review; unknown ids are ignored (returns False)."""
        deleted = self.destroy(id)
        if deleted:
            logger.info("Deleted book %s", id)
        return deleted

    def find_by_title(self, title: str) -> Optional[Book]:
        return self.repo.by_title(title)

    def books_by_publisher(self, publisher_id: Id) -> List[Book]:
        return self.repo.by_publisher(publisher_id)
