"""Formulaire de contact et avis clients (les 4 derniers avis sont publics)."""
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field

from subsage.utils.deps import get_db
from subsage.utils.rate_limit import optional_rate_limit
from subsage.utils.security import require_user
from . import repository

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["Contact API"])


class ContactRequest(BaseModel):
    name: Optional[str] = None
    email: EmailStr
    message: str = Field(min_length=1, max_length=5000)


class ReviewRequest(BaseModel):
    name: Optional[str] = None
    email: EmailStr
    rating: int = Field(ge=1, le=5)
    review_text: str = Field(min_length=1, max_length=5000)


@router.post("/contact", dependencies=[Depends(optional_rate_limit(times=5, seconds=60))])
def submit_contact(req: ContactRequest, db=Depends(get_db)) -> Dict[str, Any]:
    repository.insert_contact(db, (req.name or "").strip(), req.email, req.message.strip())
    logger.info("contact.submit reçu")
    return {"message": "Votre message a bien été envoyé"}


@router.post("/reviews", dependencies=[Depends(optional_rate_limit(times=5, seconds=60))])
def submit_review(req: ReviewRequest, user: Dict[str, Any] = Depends(require_user), db=Depends(get_db)) -> Dict[str, Any]:
    repository.insert_review(
        db, user["id"], (req.name or user.get("username") or "").strip(), req.email, req.rating, req.review_text.strip()
    )
    return {"message": "Votre avis a bien été enregistré"}


@router.get("/reviews")
def list_reviews(db=Depends(get_db)) -> Dict[str, Any]:
    return {"reviews": repository.latest_reviews(db)}
