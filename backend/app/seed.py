"""Demo data: one administrator, two regular users and a few travel requests.

Run with ``python -m app.seed``. Existing accounts (matched by email) are left untouched.
"""
import logging
from datetime import timedelta

from sqlalchemy.orm import Session

from app.database import Base, SessionLocal, engine
from app.models.revoked_token import RevokedToken  # noqa: F401
from app.models.travel_request import TravelRequest, TravelRequestStatus
from app.models.user import User, UserRole
from app.security import get_password_hash
from app.services.travel_request_service import local_today

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "Password@123"

DEMO_USERS = [
    {"name": "Admin", "email": "admin@example.com", "role": UserRole.admin},
    {"name": "Ana Souza", "email": "ana@example.com", "role": UserRole.user},
    {"name": "Bruno Lima", "email": "bruno@example.com", "role": UserRole.user},
]

# (owner email, destination, days from today, trip length, status)
DEMO_TRAVEL_REQUESTS = [
    ("ana@example.com", "São Paulo, SP", 7, 3, TravelRequestStatus.requested),
    ("ana@example.com", "Lisbon, Portugal", 30, 10, TravelRequestStatus.approved),
    ("bruno@example.com", "Rio de Janeiro, RJ", 14, 5, TravelRequestStatus.requested),
    ("bruno@example.com", "Buenos Aires, Argentina", 21, 4, TravelRequestStatus.cancelled),
]


def seed_users(db: Session) -> dict[str, User]:
    users = {}
    for entry in DEMO_USERS:
        user = db.query(User).filter(User.email == entry["email"]).first()
        if not user:
            user = User(
                name=entry["name"],
                email=entry["email"],
                password_hash=get_password_hash(DEMO_PASSWORD),
                role=entry["role"],
            )
            db.add(user)
            logger.info("Seeded user %s (%s)", entry["email"], entry["role"].value)
        users[entry["email"]] = user
    db.commit()
    return users


def seed_travel_requests(db: Session, users: dict[str, User]) -> int:
    today = local_today()
    created = 0
    for email, destination, offset, length, status in DEMO_TRAVEL_REQUESTS:
        owner = users[email]
        exists = db.query(TravelRequest).filter(
            TravelRequest.owner_id == owner.user_id,
            TravelRequest.destination == destination,
        ).first()
        if exists:
            continue
        departure = today + timedelta(days=offset)
        db.add(TravelRequest(
            owner_id=owner.user_id,
            requester_name=owner.name,
            destination=destination,
            departure_date=departure,
            return_date=departure + timedelta(days=length),
            status=status,
        ))
        created += 1
    db.commit()
    return created


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        users = seed_users(db)
        created = seed_travel_requests(db, users)
    finally:
        db.close()
    logger.info("Seeded %d travel requests", created)


if __name__ == "__main__":
    main()
