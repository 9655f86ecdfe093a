#!/usr/bin/env python3
"""
Reset the database and load a small demo dataset.

Usage:
    python scripts/seed_demo.py [--database-url sqlite:///data/demo.sqlite]
"""
import argparse
from datetime import datetime

from sqlalchemy import delete

from memorial import create_app
from memorial.db import get_database
from memorial.models import (
    Cemetery,
    Contribution,
    FamilyRelationship,
    Location,
    Memorial,
    MemorialReminder,
    OfferingType,
    Person,
    Photo,
    RelationshipType,
    Remembrance,
    User,
    VirtualOffering,
)
from memorial.security import hash_password

DEMO_EMAIL = "demo@vhm.org"
DEMO_PASSWORD = "DemoPass123"

# Child tables first so foreign keys never dangle.
RESET_ORDER = [
    Contribution,
    FamilyRelationship,
    Photo,
    MemorialReminder,
    VirtualOffering,
    Remembrance,
    Memorial,
    Person,
    Cemetery,
    Location,
    User,
]


def seed(session) -> dict:
    for model in RESET_ORDER:
        session.execute(delete(model))

    session.add(User(email=DEMO_EMAIL, password_hash=hash_password(DEMO_PASSWORD)))

    saigon = Location(name="Saigon", city="Ho Chi Minh City", country="Vietnam")
    garden = Location(name="Garden of Serenity", city="San Jose", country="USA")
    session.add_all([saigon, garden])
    session.flush()

    cemetery = Cemetery(name="Garden of Serenity", location_id=garden.id)
    session.add(cemetery)
    session.flush()

    minh = Person(
        first_name="Minh",
        last_name="Tran",
        date_of_birth=datetime(1954, 4, 7),
        date_of_death=datetime(1988, 6, 4),
        cause_of_death="Lost at sea while seeking freedom",
        place_of_birth_id=saigon.id,
        place_of_death_id=garden.id,
        cemetery_id=cemetery.id,
    )
    lan = Person(
        first_name="Lan",
        last_name="Nguyen",
        date_of_birth=datetime(1969, 1, 1),
        date_of_death=datetime(1989, 5, 12),
        cause_of_death="Perished during the journey",
        place_of_birth_id=saigon.id,
        place_of_death_id=garden.id,
        cemetery_id=cemetery.id,
    )
    session.add_all([minh, lan])
    session.flush()

    session.add(FamilyRelationship(
        person_id=minh.id,
        related_person_id=lan.id,
        relationship_type=RelationshipType.SPOUSE,
    ))

    memorial = Memorial(person_id=minh.id)
    session.add(memorial)
    session.flush()

    session.add(Remembrance(
        memorial_id=memorial.id,
        message="Forever remembered for courage and love.",
        author_name="Family",
        approved=True,
        is_public=True,
    ))
    session.add(VirtualOffering(
        memorial_id=memorial.id,
        offering_type=OfferingType.CANDLE,
        message="A light in our hearts",
    ))
    session.add(Photo(
        person_id=minh.id,
        url="https://images.unsplash.com/photo-1500530855697-b586d89ba3ee?auto=format&fit=crop&w=800&q=80",
        thumbnail_url="https://images.unsplash.com/photo-1500530855697-b586d89ba3ee?auto=format&fit=crop&w=320&q=80",
        caption="In memory",
        is_primary=True,
    ))
    session.commit()
    return {"persons": 2, "locations": 2, "cemeteries": 1, "users": 1}


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed the memorial database with demo data")
    parser.add_argument("--database-url", help="SQLAlchemy URL (defaults to DATABASE_URL)")
    args = parser.parse_args()

    overrides = {"DATABASE_URL": args.database_url} if args.database_url else None
    app = create_app(overrides)
    session = get_database(app).session()
    try:
        summary = seed(session)
    finally:
        session.close()
    print(" ".join(f"{key}={value}" for key, value in summary.items()))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
