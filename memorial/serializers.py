from __future__ import annotations

from typing import Any, Dict, Optional

from .date_parser import to_iso
from .models import (
    Cemetery,
    Contribution,
    FamilyRelationship,
    Location,
    MemorialReminder,
    Person,
    Photo,
    Remembrance,
    VirtualOffering,
)


def location_to_dict(loc: Optional[Location]) -> Optional[dict]:
    if loc is None:
        return None
    return {
        "id": loc.id,
        "name": loc.name,
        "city": loc.city,
        "country": loc.country,
        "createdAt": to_iso(loc.created_at),
    }


def cemetery_to_dict(c: Optional[Cemetery], include_location: bool = True) -> Optional[dict]:
    if c is None:
        return None
    data = {
        "id": c.id,
        "name": c.name,
        "locationId": c.location_id,
        "createdAt": to_iso(c.created_at),
    }
    if include_location:
        data["location"] = location_to_dict(c.location)
    return data


def person_to_dict(p: Person) -> dict:
    return {
        "id": p.id,
        "firstName": p.first_name,
        "lastName": p.last_name,
        "dateOfBirth": to_iso(p.date_of_birth),
        "dateOfDeath": to_iso(p.date_of_death),
        "causeOfDeath": p.cause_of_death,
        "placeOfBirthId": p.place_of_birth_id,
        "placeOfDeathId": p.place_of_death_id,
        "cemeteryId": p.cemetery_id,
        "createdAt": to_iso(p.created_at),
        "updatedAt": to_iso(p.updated_at),
    }


def person_with_places(p: Person) -> dict:
    data = person_to_dict(p)
    data["placeOfBirth"] = location_to_dict(p.place_of_birth)
    data["placeOfDeath"] = location_to_dict(p.place_of_death)
    data["cemetery"] = cemetery_to_dict(p.cemetery)
    return data


def photo_to_dict(photo: Photo) -> dict:
    return {
        "id": photo.id,
        "personId": photo.person_id,
        "url": photo.url,
        "thumbnailUrl": photo.thumbnail_url,
        "caption": photo.caption,
        "isPrimary": photo.is_primary,
        "createdAt": to_iso(photo.created_at),
    }


def remembrance_to_dict(r: Remembrance) -> dict:
    return {
        "id": r.id,
        "memorialId": r.memorial_id,
        "message": r.message,
        "authorName": r.author_name,
        "isPublic": r.is_public,
        "approved": r.approved,
        "createdAt": to_iso(r.created_at),
    }


def offering_to_dict(o: VirtualOffering) -> dict:
    return {
        "id": o.id,
        "memorialId": o.memorial_id,
        "offeringType": o.offering_type.value,
        "message": o.message,
        "authorName": o.author_name,
        "createdAt": to_iso(o.created_at),
    }


def reminder_to_dict(r: MemorialReminder) -> dict:
    return {
        "id": r.id,
        "memorialId": r.memorial_id,
        "userId": r.user_id,
        "title": r.title,
        "date": to_iso(r.date),
        "frequency": r.frequency.value,
        "active": r.active,
        "createdAt": to_iso(r.created_at),
    }


def relationship_to_dict(rel: FamilyRelationship, include_persons: bool = False) -> dict:
    data: Dict[str, Any] = {
        "id": rel.id,
        "personId": rel.person_id,
        "relatedPersonId": rel.related_person_id,
        "relationshipType": rel.relationship_type.value,
        "createdAt": to_iso(rel.created_at),
    }
    if include_persons:
        data["person"] = person_to_dict(rel.person)
        data["relatedPerson"] = person_to_dict(rel.related_person)
    return data


def contribution_to_dict(c: Contribution) -> dict:
    return {
        "id": c.id,
        "userId": c.user_id,
        "personId": c.person_id,
        "type": c.type.value,
        "data": c.data,
        "status": c.status.value,
        "submittedAt": to_iso(c.submitted_at),
        "reviewedAt": to_iso(c.reviewed_at),
        "reviewedBy": c.reviewed_by,
    }
