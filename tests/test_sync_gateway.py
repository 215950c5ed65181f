from unittest import mock
from uuid import UUID

import pytest
from sqlalchemy import Column
from sqlalchemy import MetaData
from sqlalchemy import Table
from sqlalchemy import Text
from sqlalchemy import Uuid

from bookstore import AlreadyExists
from bookstore import DoesNotExist
from bookstore import Filter
from bookstore import InMemorySyncDatabase
from bookstore import InMemorySyncGateway

ID_1 = UUID("00000000-0000-0000-0000-000000000001")
ID_2 = UUID("00000000-0000-0000-0000-000000000002")
ID_3 = UUID("00000000-0000-0000-0000-000000000003")
ID_4 = UUID("00000000-0000-0000-0000-000000000004")

metadata = MetaData()

user = Table(
    "user",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("name", Text, nullable=False),
)


class UserGateway(InMemorySyncGateway, table=user):
    pass


@pytest.fixture
def in_memory_gateway():
    gateway = UserGateway(InMemorySyncDatabase(metadata))
    for id, name in [(ID_1, "a"), (ID_2, "b"), (ID_3, "c")]:
        gateway.add({"id": id, "name": name})
    return gateway


def test_get(in_memory_gateway):
    actual = in_memory_gateway.get(ID_1)
    assert actual == {"id": ID_1, "name": "a"}


def test_get_none(in_memory_gateway):
    actual = in_memory_gateway.get(ID_4)
    assert actual is None


def test_add(in_memory_gateway):
    record = {"id": ID_4, "name": "d"}
    assert in_memory_gateway.add(record) == record
    assert in_memory_gateway.data[(ID_4,)] == record


def test_add_generates_id(in_memory_gateway):
    actual = in_memory_gateway.add({"name": "d"})
    assert isinstance(actual["id"], UUID)
    assert in_memory_gateway.data[(actual["id"],)] == actual


def test_add_id_exists(in_memory_gateway):
    with pytest.raises(AlreadyExists):
        in_memory_gateway.add({"id": ID_3, "name": "d"})


def test_add_returns_copy(in_memory_gateway):
    actual = in_memory_gateway.add({"id": ID_4, "name": "d"})
    actual["name"] = "e"
    assert in_memory_gateway.data[(ID_4,)]["name"] == "d"


def test_update(in_memory_gateway):
    record = {"id": ID_3, "name": "d"}
    assert in_memory_gateway.update(record) == record
    assert in_memory_gateway.data[(ID_3,)] == record


def test_update_no_id(in_memory_gateway):
    with pytest.raises(DoesNotExist):
        in_memory_gateway.update({"no": "id"})


def test_update_does_not_exist(in_memory_gateway):
    with pytest.raises(DoesNotExist):
        in_memory_gateway.update({"id": ID_4, "name": "d"})


def test_upsert(in_memory_gateway):
    record = {"id": ID_3, "name": "d"}
    in_memory_gateway.upsert(record)
    assert in_memory_gateway.data[(ID_3,)] == record


def test_upsert_no_id(in_memory_gateway):
    actual = in_memory_gateway.upsert({"name": "x"})
    assert in_memory_gateway.data[(actual["id"],)] == {"id": actual["id"], "name": "x"}


def test_upsert_does_add(in_memory_gateway):
    in_memory_gateway.upsert({"id": ID_4, "name": "x"})
    assert in_memory_gateway.data[(ID_4,)] == {"id": ID_4, "name": "x"}


def test_remove(in_memory_gateway):
    assert in_memory_gateway.remove(ID_1)
    assert (ID_1,) not in in_memory_gateway.data
    assert len(in_memory_gateway.data) == 2


def test_remove_not_existing(in_memory_gateway):
    assert not in_memory_gateway.remove(ID_4)
    assert len(in_memory_gateway.data) == 3


def test_remove_by(in_memory_gateway):
    assert in_memory_gateway.remove_by([Filter(field="name", values=["a", "b"])]) == 2
    assert list(in_memory_gateway.data) == [(ID_3,)]


def test_filter_all(in_memory_gateway):
    actual = in_memory_gateway.filter([])
    assert actual == list(in_memory_gateway.data.values())


def test_filter(in_memory_gateway):
    actual = in_memory_gateway.filter([Filter(field="name", values=["b"])])
    assert actual == [in_memory_gateway.data[(ID_2,)]]


def test_filter_multiple_values(in_memory_gateway):
    actual = in_memory_gateway.filter([Filter(field="id", values=[ID_1, ID_4])])
    assert actual == [{"id": ID_1, "name": "a"}]


def test_filter_and(in_memory_gateway):
    actual = in_memory_gateway.filter(
        [Filter(field="id", values=[ID_1]), Filter(field="name", values=["b"])]
    )
    assert actual == []


def test_count_all(in_memory_gateway):
    actual = in_memory_gateway.count([])
    assert actual == 3


def test_count_with_filter(in_memory_gateway):
    actual = in_memory_gateway.count([Filter(field="name", values=["b"])])
    assert actual == 1


@pytest.mark.parametrize("name,expected", [("b", True), ("d", False)])
def test_exists(in_memory_gateway, name, expected):
    actual = in_memory_gateway.exists([Filter(field="name", values=[name])])
    assert actual is expected


def test_update_transactional(in_memory_gateway):
    actual = in_memory_gateway.update_transactional(
        ID_3, lambda x: {**x, "name": x["name"] + "x"}
    )
    assert actual == {"id": ID_3, "name": "cx"}
    assert in_memory_gateway.data[(ID_3,)]["name"] == "cx"


def test_update_transactional_does_not_exist(in_memory_gateway):
    func = mock.Mock()
    with pytest.raises(DoesNotExist):
        in_memory_gateway.update_transactional(ID_4, func)

    assert not func.called


def test_transaction_rollback(in_memory_gateway):
    with pytest.raises(RuntimeError):
        with in_memory_gateway.transaction() as transaction:
            transaction.add({"id": ID_4, "name": "d"})
            transaction.remove(ID_1)
            raise RuntimeError()

    assert in_memory_gateway.get(ID_4) is None
    assert in_memory_gateway.get(ID_1) is not None


def test_transaction_commit(in_memory_gateway):
    with in_memory_gateway.transaction() as transaction:
        transaction.add({"id": ID_4, "name": "d"})

    assert in_memory_gateway.get(ID_4) == {"id": ID_4, "name": "d"}


def test_sibling_shares_database(in_memory_gateway):
    sibling = in_memory_gateway.sibling(UserGateway)
    assert sibling.database is in_memory_gateway.database
    assert sibling.get(ID_1) == {"id": ID_1, "name": "a"}


def test_generated_ids_differ(in_memory_gateway):
    ids = {in_memory_gateway.add({"name": "x"})["id"] for _ in range(3)}
    assert len(ids) == 3
