from sqlalchemy.orm import Session

from config import MAX_FAMILY_CONTACTS
from models.family_contact import FamilyContact
from services.exceptions import ContactLimitError


def active_contacts(db: Session, user_id: int) -> list[FamilyContact]:
    return (
        db.query(FamilyContact)
        .filter(FamilyContact.user_id == user_id, FamilyContact.is_active.is_(True))
        .order_by(FamilyContact.created_at.desc(), FamilyContact.id.desc())
        .all()
    )


def add_contact(db: Session, user_id: int, **fields) -> FamilyContact:
    count = (
        db.query(FamilyContact)
        .filter(FamilyContact.user_id == user_id, FamilyContact.is_active.is_(True))
        .count()
    )
    if count >= MAX_FAMILY_CONTACTS:
        raise ContactLimitError(f"At most {MAX_FAMILY_CONTACTS} family contacts can be added")
    contact = FamilyContact(user_id=user_id, **fields)
    db.add(contact)
    db.commit()
    db.refresh(contact)
    return contact
