from sqlalchemy import Column
from sqlalchemy import ForeignKey
from sqlalchemy import MetaData
from sqlalchemy import Table
from sqlalchemy import text
from sqlalchemy import Text
from sqlalchemy import Uuid

__all__ = ["metadata", "publisher", "author", "book", "review", "book_author"]


metadata = MetaData()

# gen_random_uuid() is built into PostgreSQL >= 13
GENERATE_ID = text("gen_random_uuid()")


publisher = Table(
    "publisher",
    metadata,
    Column("id", Uuid, primary_key=True, server_default=GENERATE_ID),
    Column("name", Text, nullable=False, unique=True),
)


author = Table(
    "author",
    metadata,
    Column("id", Uuid, primary_key=True, server_default=GENERATE_ID),
    Column("name", Text, nullable=False),
)


book = Table(
    "book",
    metadata,
    Column("id", Uuid, primary_key=True, server_default=GENERATE_ID),
    Column("title", Text, nullable=False, unique=True),
    Column(
        "publisher_id",
        Uuid,
        ForeignKey("publisher.id", name="book_publisher_id_fkey"),
        nullable=True,
    ),
)


review = Table(
    "review",
    metadata,
    Column("id", Uuid, primary_key=True, server_default=GENERATE_ID),
    Column("comment", Text, nullable=False),
    Column(
        "book_id",
        Uuid,
        ForeignKey("book.id", ondelete="CASCADE", name="review_book_id_fkey"),
        nullable=False,
        unique=True,
    ),
)


book_author = Table(
    "book_author",
    metadata,
    Column(
        "book_id",
        Uuid,
        ForeignKey("book.id", ondelete="CASCADE", name="book_author_book_id_fkey"),
        primary_key=True,
    ),
    Column(
        "author_id",
        Uuid,
        ForeignKey("author.id", ondelete="CASCADE", name="book_author_author_id_fkey"),
        primary_key=True,
    ),
)
