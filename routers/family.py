from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from database import get_db
from dependencies import get_current_user
from models.family_contact import FamilyContact
from models.user import User
from schemas.family import FamilyContactCreate, FamilyContactOut, FamilyContactUpdate
from schemas.medication import CreatedOut, SuccessOut
from services.exceptions import ContactLimitError
from services.family import active_contacts, add_contact

router = APIRouter(prefix="/family", tags=["Family Contacts"])


def _get_owned_contact(db: Session, contact_id: int, user_id: int) -> FamilyContact:
    contact = (
        db.query(FamilyContact)
        .filter(
            FamilyContact.id == contact_id,
            FamilyContact.user_id == user_id,
            FamilyContact.is_active.is_(True),
        )
        .first()
    )
    if not contact:
        raise HTTPException(status_code=404, detail="Family contact not found")
    return contact


@router.get("/", response_model=list[FamilyContactOut])
def list_contacts(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return active_contacts(db, current_user.id)


@router.post("/", response_model=CreatedOut)
def create_contact(
    data: FamilyContactCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        contact = add_contact(db, current_user.id, **data.model_dump())
    except ContactLimitError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return CreatedOut(id=contact.id)


@router.put("/{contact_id}", response_model=SuccessOut)
def update_contact(
    contact_id: int,
    data: FamilyContactUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    contact = _get_owned_contact(db, contact_id, current_user.id)
    for key, value in data.model_dump(exclude_unset=True).items():
        if value is None and key in {"contact_name", "contact_email", "notify_on_low_stock", "notify_on_missed_dose"}:
            continue
        setattr(contact, key, value)
    db.commit()
    return SuccessOut()


@router.delete("/{contact_id}", response_model=SuccessOut)
def delete_contact(
    contact_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    contact = _get_owned_contact(db, contact_id, current_user.id)
    contact.is_active = False
    db.commit()
    return SuccessOut()
