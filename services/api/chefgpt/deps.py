"""FastAPI dependencies for ChefGPT API.

Provides:
- Database session dependency
- Current user resolution (identity-provider subject header -> User row)
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .db import get_db
from .models import User
from .settings import settings

logger = logging.getLogger("chefgpt.auth")


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
) -> User:
    """Resolve the authenticated user.

    The identity provider (Clerk) runs in front of the API and forwards the
    verified subject id in `settings.auth_user_header`. The profile row is
    created on the first request for a new subject.

    Raises:
        HTTPException 401 if the subject header is absent
    """
    user_id: Optional[str] = request.headers.get(settings.auth_user_header)
    if not user_id or not user_id.strip():
        raise HTTPException(status_code=401, detail="Unauthorized")
    user_id = user_id.strip()

    user = db.get(User, user_id)
    if user:
        return user

    email = request.headers.get(settings.auth_email_header) or None
    user = User(id=user_id, email=email)
    try:
        db.add(user)
        db.commit()
    except IntegrityError:
        # Concurrent first request for the same subject already created it
        db.rollback()
        user = db.get(User, user_id)
        if user is not None:
            return user
        # Email already belongs to another subject; keep the profile without it
        user = User(id=user_id)
        db.add(user)
        db.commit()

    db.refresh(user)
    logger.info("Created profile for new user %s", user_id)
    return user
