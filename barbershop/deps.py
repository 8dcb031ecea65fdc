# barbershop/deps.py

from fastapi import Depends, HTTPException
from sqlmodel import Session

from .auth import get_current_user
from .db import get_session
from .models import Barber
from . import stores


def require_role(user: dict, *roles: str):
    if user["role"] not in roles:
        raise HTTPException(status_code=403, detail="Forbidden")


def get_current_barber(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
) -> Barber:
    require_role(current_user, "barber")
    barber = stores.get_barber_for_user(session, current_user["id"])
    if barber is None:
        raise HTTPException(status_code=404, detail="Barber profile not found")
    return barber


def get_current_admin(current_user: dict = Depends(get_current_user)) -> dict:
    require_role(current_user, "admin")
    return current_user
