import pytest
from unittest.mock import MagicMock, patch
from fastapi.testclient import TestClient
from bson import ObjectId
from datetime import date, datetime, timedelta, timezone
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from src.main import app
from src.conf.db import get_db
from src.schemas.contact import ContactResponse
from src.services.errors import Conflict, NotFound, Unexpected

client = TestClient(app)


@pytest.fixture()
def collection():
    return MagicMock(spec=Collection)


@pytest.fixture()
def db(collection):
    db = MagicMock(spec=Database)
    db.__getitem__.return_value = collection
    app.dependency_overrides[get_db] = lambda: db
    yield db
    app.dependency_overrides.clear()


@pytest.fixture()
def contact_id():
    return str(ObjectId())


@pytest.fixture()
def contact_body():
    return {
        "firstName": "John",
        "lastName": "Doe",
        "email": "john.doe@example.com",
        "favoriteColor": "Blue",
        "birthday": "1990-01-01",
    }


@pytest.fixture()
def contact(contact_id):
    created_at = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return ContactResponse(id=contact_id, first_name="John", last_name="Doe", email="john.doe@example.com",
                           favorite_color="Blue", birthday=date(1990, 1, 1),
                           created_at=created_at, updated_at=created_at)


@pytest.mark.asyncio
async def test_create_contact(db, contact_body, contact):
    with patch("src.repository.contacts.create_contact", return_value=contact):
        response = client.post("/contacts", json=contact_body)
        assert response.status_code == 201
        data = response.json()
        assert data["id"] == contact.id
        assert data["firstName"] == contact_body["firstName"]
        assert data["birthday"] == "1990-01-01"
        assert "createdAt" in data and "updatedAt" in data


@pytest.mark.asyncio
async def test_create_contact_lowercases_email(db, collection):
    new_id = ObjectId()
    collection.insert_one.return_value = MagicMock(inserted_id=new_id)
    response = client.post("/contacts", json={
        "firstName": "Jo", "lastName": "Li", "email": "JO@X.COM", "favoriteColor": "Red", "birthday": "1990-01-01",
    })
    assert response.status_code == 201
    assert response.json()["email"] == "jo@x.com"
    assert response.json()["id"] == str(new_id)
    assert collection.insert_one.call_args.args[0]["email"] == "jo@x.com"


@pytest.mark.asyncio
async def test_create_contact_future_birthday(db, collection, contact_body):
    contact_body["birthday"] = (date.today() + timedelta(days=30)).isoformat()
    response = client.post("/contacts", json=contact_body)
    assert response.status_code == 400
    assert response.json() == {"detail": {"message": "Validation failed",
                                          "errors": ["Birthday cannot be in the future"]}}
    collection.insert_one.assert_not_called()


@pytest.mark.asyncio
async def test_create_contact_missing_fields(db):
    response = client.post("/contacts", json={"firstName": "John"})
    assert response.status_code == 400
    errors = response.json()["detail"]["errors"]
    assert errors == ["Last name is required", "Email is required", "Favorite color is required", "Birthday is required"]


@pytest.mark.asyncio
async def test_create_contact_duplicate_email_case_insensitive(db, collection, contact_body):
    collection.insert_one.side_effect = [
        MagicMock(inserted_id=ObjectId()),
        DuplicateKeyError("E11000 duplicate key error collection: contacts index: email_1"),
    ]
    first = client.post("/contacts", json=contact_body)
    second = client.post("/contacts", json=dict(contact_body, email=contact_body["email"].upper()))
    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json() == {"detail": "Email already exists"}
    assert collection.insert_one.call_args.args[0]["email"] == contact_body["email"]


@pytest.mark.asyncio
async def test_read_contacts(db, contact):
    with patch("src.repository.contacts.get_contacts", return_value=[contact]):
        response = client.get("/contacts")
        assert response.status_code == 200
        data = response.json()
        assert len(data) == 1
        assert data[0]["firstName"] == contact.first_name


@pytest.mark.asyncio
async def test_read_contacts_store_error(db):
    with patch("src.repository.contacts.get_contacts", side_effect=Unexpected("Failed to fetch contacts")):
        response = client.get("/contacts")
        assert response.status_code == 500
        assert response.json() == {"detail": "Failed to fetch contacts"}


@pytest.mark.asyncio
async def test_read_contact_found(db, contact):
    with patch("src.repository.contacts.get_contact", return_value=contact):
        response = client.get(f"/contacts/{contact.id}")
        assert response.status_code == 200
        assert response.json()["email"] == contact.email


@pytest.mark.asyncio
async def test_read_contact_not_found(db, contact_id):
    with patch("src.repository.contacts.get_contact", side_effect=NotFound()):
        response = client.get(f"/contacts/{contact_id}")
        assert response.status_code == 404
        assert response.json() == {"detail": "Contact not found"}


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["get", "put", "delete"])
async def test_malformed_id_never_reaches_store(db, collection, method):
    kwargs = {"json": {"firstName": "Jane"}} if method == "put" else {}
    response = client.request(method.upper(), "/contacts/not-a-valid-id", **kwargs)
    assert response.status_code == 400
    assert response.json() == {"detail": "Invalid contact ID format"}
    assert collection.method_calls == []


@pytest.mark.asyncio
async def test_update_contact(db, collection, contact_id):
    created_at = datetime(2024, 1, 1, tzinfo=timezone.utc)
    collection.find_one_and_update.return_value = {
        "_id": ObjectId(contact_id), "firstName": "John", "lastName": "Doe", "email": "john.doe@example.com",
        "favoriteColor": "Green", "birthday": datetime(1990, 1, 1, tzinfo=timezone.utc),
        "createdAt": created_at, "updatedAt": created_at + timedelta(hours=1),
    }
    response = client.put(f"/contacts/{contact_id}", json={"favoriteColor": "Green"})
    assert response.status_code == 200
    data = response.json()
    assert data["favoriteColor"] == "Green"
    assert data["firstName"] == "John"
    assert data["updatedAt"] > data["createdAt"]
    changes = collection.find_one_and_update.call_args.args[1]["$set"]
    assert set(changes) == {"favoriteColor", "updatedAt"}


@pytest.mark.asyncio
@pytest.mark.parametrize("path_id", [str(ObjectId()), "not-a-valid-id"])
async def test_update_contact_without_fields(db, collection, path_id):
    response = client.put(f"/contacts/{path_id}", json={})
    assert response.status_code == 400
    assert response.json()["detail"]["errors"] == ["At least one field must be provided for update"]
    collection.find_one_and_update.assert_not_called()


@pytest.mark.asyncio
async def test_update_contact_not_found(db, contact_id):
    with patch("src.repository.contacts.update_contact", side_effect=NotFound()):
        response = client.put(f"/contacts/{contact_id}", json={"lastName": "Smith"})
        assert response.status_code == 404
        assert response.json() == {"detail": "Contact not found"}


@pytest.mark.asyncio
async def test_update_contact_conflict(db, contact_id):
    with patch("src.repository.contacts.update_contact", side_effect=Conflict()):
        response = client.put(f"/contacts/{contact_id}", json={"email": "taken@example.com"})
        assert response.status_code == 409
        assert response.json() == {"detail": "Email already exists"}


@pytest.mark.asyncio
async def test_delete_contact(db, contact):
    with patch("src.repository.contacts.delete_contact", return_value=contact):
        response = client.delete(f"/contacts/{contact.id}")
        assert response.status_code == 200
        assert response.json()["id"] == contact.id


@pytest.mark.asyncio
async def test_delete_missing_contact_is_not_found(db, collection, contact_id):
    collection.find_one_and_delete.return_value = None
    for _ in range(2):
        response = client.delete(f"/contacts/{contact_id}")
        assert response.status_code == 404
        assert response.json() == {"detail": "Contact not found"}
