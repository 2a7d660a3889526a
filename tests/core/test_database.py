from unittest.mock import MagicMock, patch

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from app.core.database import MongoStore


@pytest.fixture
def mongo_client():
    return MagicMock()


@pytest.fixture
def store(mongo_client):
    with patch("app.core.database.GridFSBucket") as bucket:
        store = MongoStore(client=mongo_client)
    store.bucket_factory = bucket
    return store


def test_collections_and_bucket(store, mongo_client):
    assert store.users is store.db["users"]
    assert store.recipes is store.db["recipes"]
    store.bucket_factory.assert_called_once()
    assert store.bucket_factory.call_args.kwargs["bucket_name"] == "recipeImages"


def test_ensure_indexes_unique_constraints(store):
    store.ensure_indexes()

    user_indexes = {c.kwargs["name"]: c.kwargs for c in store.users.create_index.call_args_list}
    recipe_indexes = {c.kwargs["name"]: c.kwargs for c in store.recipes.create_index.call_args_list}

    assert user_indexes["id_1"]["unique"] is True
    assert user_indexes["email_1"]["unique"] is True
    assert recipe_indexes["id_1"]["unique"] is True
    assert recipe_indexes["id_1"]["partialFilterExpression"] == {"id": {"$type": "number"}}


def test_ping(store, mongo_client):
    assert store.ping() is True
    mongo_client.admin.command.assert_called_once_with("ping")

    mongo_client.admin.command.side_effect = ServerSelectionTimeoutError("down")
    assert store.ping() is False


def test_init_db_script(mongo_client):
    from scripts.init_db import init_db

    with patch("app.core.database.GridFSBucket"), \
            patch("scripts.init_db.MongoStore", side_effect=lambda: MongoStore(client=mongo_client)):
        assert init_db() is True

    mongo_client.close.assert_called_once()
