# barbershop/data.py

import logging

from sqlmodel import Session, select

from .auth import hash_password
from .config import Settings
from .models import Service, User

logger = logging.getLogger(__name__)

# name: (price, duration in minutes)
DEFAULT_SERVICES = {
    "Shape Up": (15.0, 15),
    "Beard Trim": (15.0, 15),
    "Haircut": (30.0, 30),
    "Fade": (35.0, 30),
    "Scissors Cut": (35.0, 30),
    "Cut and Beard": (45.0, 45),
}


def seed_services(session: Session) -> int:
    if session.exec(select(Service)).first() is not None:
        return 0

    for name, (price, duration) in DEFAULT_SERVICES.items():
        session.add(Service(name=name, price=price, duration_minutes=duration))
    session.commit()
    logger.info(f"Seeded {len(DEFAULT_SERVICES)} default services")
    return len(DEFAULT_SERVICES)


def ensure_admin(session: Session, settings: Settings) -> None:
    if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
        return

    existing = session.exec(select(User).where(User.email == settings.ADMIN_EMAIL)).first()
    if existing is not None:
        return

    session.add(User(
        email=settings.ADMIN_EMAIL,
        password_hash=hash_password(settings.ADMIN_PASSWORD),
        full_name="Administrator",
        role="admin",
    ))
    session.commit()
    logger.info(f"Created bootstrap admin {settings.ADMIN_EMAIL}")
