from fastapi import APIRouter, Depends, status
from pymongo.database import Database

from src.conf.db import get_db
from src.repository import contacts as repository_contacts
from src.schemas.contact import ContactCreate, ContactResponse, ContactUpdate
from src.services.errors import ContactError, to_http_exception

router = APIRouter(prefix="/contacts", tags=["contacts"])

ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"description": "Invalid ID format or validation error"},
    status.HTTP_404_NOT_FOUND: {"description": "Contact not found"},
    status.HTTP_409_CONFLICT: {"description": "Email already exists"},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"description": "Server error"},
}


def _responses(*codes: int) -> dict:
    return {code: ERROR_RESPONSES[code] for code in codes}


@router.get("", response_model=list[ContactResponse], responses=_responses(500))
def read_contacts(db: Database = Depends(get_db)):
    """
    Retrieve all contacts, newest first.

    :param db: The database handle.
    :type db: Database
    :return: A list of contacts.
    :rtype: list[ContactResponse]
    """
    try:
        return repository_contacts.get_contacts(db)
    except ContactError as e:
        raise to_http_exception(e)


@router.get("/{contact_id}", response_model=ContactResponse, responses=_responses(400, 404, 500))
def read_contact(contact_id: str, db: Database = Depends(get_db)):
    """
    Retrieve a single contact by its ID.

    :param contact_id: The ID of the contact to retrieve.
    :type contact_id: str
    :param db: The database handle.
    :type db: Database
    :raises HTTPException: 400 if the ID is malformed, 404 if the contact does not exist.
    :return: The retrieved contact.
    :rtype: ContactResponse
    """
    try:
        return repository_contacts.get_contact(db, contact_id)
    except ContactError as e:
        raise to_http_exception(e)


@router.post("", response_model=ContactResponse, status_code=status.HTTP_201_CREATED,
             responses=_responses(400, 409, 500))
def create_contact(body: ContactCreate, db: Database = Depends(get_db)):
    """
    Create a new contact.

    :param body: The contact data to create.
    :type body: ContactCreate
    :param db: The database handle.
    :type db: Database
    :raises HTTPException: 409 if the email is already in use.
    :return: The newly created contact.
    :rtype: ContactResponse
    """
    try:
        return repository_contacts.create_contact(db, body)
    except ContactError as e:
        raise to_http_exception(e)


@router.put("/{contact_id}", response_model=ContactResponse, responses=_responses(400, 404, 409, 500))
def update_contact(contact_id: str, body: ContactUpdate, db: Database = Depends(get_db)):
    """
    Update some or all fields of an existing contact.

    :param contact_id: The ID of the contact to update.
    :type contact_id: str
    :param body: The fields to change.
    :type body: ContactUpdate
    :param db: The database handle.
    :type db: Database
    :raises HTTPException: 400 if the ID is malformed, 404 if the contact does not exist,
        409 if the new email is already in use.
    :return: The updated contact.
    :rtype: ContactResponse
    """
    try:
        return repository_contacts.update_contact(db, contact_id, body)
    except ContactError as e:
        raise to_http_exception(e)


@router.delete("/{contact_id}", response_model=ContactResponse, responses=_responses(400, 404, 500))
def delete_contact(contact_id: str, db: Database = Depends(get_db)):
    """
    Delete a contact by its ID.

    :param contact_id: The ID of the contact to delete.
    :type contact_id: str
    :param db: The database handle.
    :type db: Database
    :raises HTTPException: 400 if the ID is malformed, 404 if the contact does not exist.
    :return: The deleted contact.
    :rtype: ContactResponse
    """
    try:
        return repository_contacts.delete_contact(db, contact_id)
    except ContactError as e:
        raise to_http_exception(e)
