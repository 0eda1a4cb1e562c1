import logging
import re
from datetime import date, datetime, time, timezone

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from src.schemas.contact import ContactCreate, ContactResponse, ContactUpdate
from src.services.errors import Conflict, MalformedInput, NotFound, Unexpected

logger = logging.getLogger(__name__)

COLLECTION = "contacts"
OBJECT_ID_PATTERN = re.compile(r"[0-9a-fA-F]{24}")


def parse_contact_id(contact_id: str) -> ObjectId:
    """
    Converts a path identifier into an ``ObjectId`` without touching the store.

    :param contact_id: The identifier taken from the request path.
    :type contact_id: str
    :raises MalformedInput: If the identifier is not a 24 character hex string.
    :return: The parsed identifier.
    :rtype: ObjectId
    """
    if not isinstance(contact_id, str) or not OBJECT_ID_PATTERN.fullmatch(contact_id):
        raise MalformedInput("Invalid contact ID format")
    return ObjectId(contact_id)


def _now() -> datetime:
    # BSON datetimes keep milliseconds only
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def _to_document(fields: dict) -> dict:
    # bson has no date type, birthdays are kept as UTC midnight
    document = dict(fields)
    if isinstance(document.get("birthday"), date):
        document["birthday"] = datetime.combine(document["birthday"], time.min, tzinfo=timezone.utc)
    return document


def _to_contact(document: dict) -> ContactResponse:
    fields = dict(document)
    fields["id"] = str(fields.pop("_id"))
    if isinstance(fields.get("birthday"), datetime):
        fields["birthday"] = fields["birthday"].date()
    return ContactResponse.model_validate(fields)


def ensure_indexes(db: Database) -> None:
    """
    Creates the unique email index and the name lookup index if they are missing.

    :param db: The database handle.
    :type db: Database
    """
    collection = db[COLLECTION]
    collection.create_index([("email", ASCENDING)], unique=True)
    collection.create_index([("lastName", ASCENDING), ("firstName", ASCENDING)])


def get_contacts(db: Database) -> list[ContactResponse]:
    """
    Retrieves every contact, newest first.

    :param db: The database handle.
    :type db: Database
    :raises Unexpected: If the store query fails.
    :return: A list of contacts.
    :rtype: list[ContactResponse]
    """
    try:
        documents = list(db[COLLECTION].find().sort("createdAt", DESCENDING))
    except PyMongoError as e:
        logger.error("Error fetching contacts: %s", e)
        raise Unexpected("Failed to fetch contacts", e) from e
    return [_to_contact(document) for document in documents]


def get_contact(db: Database, contact_id: str) -> ContactResponse:
    """
    Retrieves a single contact by its ID.

    :param db: The database handle.
    :type db: Database
    :param contact_id: The ID of the contact to retrieve.
    :type contact_id: str
    :raises MalformedInput: If the ID is not a valid ObjectId.
    :raises NotFound: If no contact has this ID.
    :raises Unexpected: If the store query fails.
    :return: The contact.
    :rtype: ContactResponse
    """
    object_id = parse_contact_id(contact_id)
    try:
        document = db[COLLECTION].find_one({"_id": object_id})
    except PyMongoError as e:
        logger.error("Error fetching contact %s: %s", contact_id, e)
        raise Unexpected("Failed to fetch contact", e) from e
    if document is None:
        raise NotFound()
    return _to_contact(document)


def create_contact(db: Database, body: ContactCreate) -> ContactResponse:
    """
    Inserts a new contact and returns it as stored.

    :param db: The database handle.
    :type db: Database
    :param body: The validated contact fields.
    :type body: ContactCreate
    :raises Conflict: If another contact already uses the email.
    :raises Unexpected: If the insert fails for any other reason.
    :return: The newly created contact.
    :rtype: ContactResponse
    """
    now = _now()
    document = _to_document(body.model_dump(by_alias=True))
    document["createdAt"] = now
    document["updatedAt"] = now
    try:
        result = db[COLLECTION].insert_one(document)
    except DuplicateKeyError:
        logger.info("Rejected duplicate email %s", body.email)
        raise Conflict()
    except PyMongoError as e:
        logger.error("Error creating contact: %s", e)
        raise Unexpected("Failed to create contact", e) from e
    document["_id"] = result.inserted_id
    return _to_contact(document)


def update_contact(db: Database, contact_id: str, body: ContactUpdate) -> ContactResponse:
    """
    Applies the supplied fields to a contact and refreshes its ``updatedAt``.

    :param db: The database handle.
    :type db: Database
    :param contact_id: The ID of the contact to update.
    :type contact_id: str
    :param body: The fields to change; fields left unset are not touched.
    :type body: ContactUpdate
    :raises MalformedInput: If the ID is invalid or no field was supplied.
    :raises NotFound: If no contact has this ID.
    :raises Conflict: If the new email belongs to another contact.
    :raises Unexpected: If the update fails for any other reason.
    :return: The updated contact.
    :rtype: ContactResponse
    """
    fields = body.model_dump(by_alias=True, exclude_unset=True)
    if not fields:
        raise MalformedInput("At least one field must be provided for update")
    object_id = parse_contact_id(contact_id)
    changes = _to_document(fields)
    changes["updatedAt"] = _now()
    try:
        document = db[COLLECTION].find_one_and_update(
            {"_id": object_id},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
    except DuplicateKeyError:
        logger.info("Rejected duplicate email on update of %s", contact_id)
        raise Conflict()
    except PyMongoError as e:
        logger.error("Error updating contact %s: %s", contact_id, e)
        raise Unexpected("Failed to update contact", e) from e
    if document is None:
        raise NotFound()
    return _to_contact(document)


def delete_contact(db: Database, contact_id: str) -> ContactResponse:
    """
    Deletes a contact by its ID.

    :param db: The database handle.
    :type db: Database
    :param contact_id: The ID of the contact to delete.
    :type contact_id: str
    :raises MalformedInput: If the ID is not a valid ObjectId.
    :raises NotFound: If no contact has this ID.
    :raises Unexpected: If the delete fails.
    :return: The deleted contact.
    :rtype: ContactResponse
    """
    object_id = parse_contact_id(contact_id)
    try:
        document = db[COLLECTION].find_one_and_delete({"_id": object_id})
    except PyMongoError as e:
        logger.error("Error deleting contact %s: %s", contact_id, e)
        raise Unexpected("Failed to delete contact", e) from e
    if document is None:
        raise NotFound()
    return _to_contact(document)
