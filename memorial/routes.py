from __future__ import annotations

from flask import Blueprint, current_app, request, send_from_directory
from typing import Any, Dict
from sqlalchemy import select, or_, func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload
import os
import logging

from .rate_limit import api_limit, auth_limit, limiter, search_limit, upload_limit
from .db import get_session
from .errors import NotFoundError, PayloadTooLarge, ValidationError, success
from .media_utils import MAX_PHOTO_BYTES, create_thumbnail, generate_filename, is_allowed_image
from .models import (
    Cemetery,
    ContributionStatus,
    ContributionType,
    FamilyRelationship,
    Location,
    Memorial,
    MemorialReminder,
    OfferingType,
    Person,
    Photo,
    RelationshipType,
    Remembrance,
    ReminderFrequency,
    VirtualOffering,
)
from .moderation import ModerationService, SubmissionService, get_or_create_memorial, record_contribution
from .search import PersonSearchPlanner, SearchFilters
from .security import current_identity, identity_service, optional_identity, require_admin, require_auth
from .serializers import (
    cemetery_to_dict,
    contribution_to_dict,
    location_to_dict,
    offering_to_dict,
    person_to_dict,
    photo_to_dict,
    relationship_to_dict,
    remembrance_to_dict,
    reminder_to_dict,
)
from .validation import (
    bool_field,
    date_field,
    email_field,
    enum_field,
    id_field,
    json_body,
    optional_int_arg,
    pagination_args,
    pagination_meta,
    string_field,
)

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__, url_prefix="/api/v1")
root_bp = Blueprint("root", __name__)

RECENT_OFFERINGS = 20
CAPTION_MAX = 200

api_limit(api_bp)


def _health_payload() -> Dict[str, Any]:
    session = get_session()
    session.execute(select(1))
    return {"status": "OK"}


@root_bp.get("/health")
@limiter.exempt
def health():
    return success(_health_payload())


@root_bp.get("/uploads/<path:file_name>")
def get_upload(file_name: str):
    return send_from_directory(current_app.config["UPLOAD_DIR"], file_name, as_attachment=False)


@api_bp.get("/")
def api_index():
    return success({"status": "Memorial API", "version": "v1"})


@api_bp.get("/health")
def api_health():
    return success(_health_payload())


# ---------------------------------------------------------------- auth

@api_bp.post("/auth/register")
@auth_limit
def register():
    data = json_body()
    email = email_field(data)
    password = string_field(data, "password", required=True, min_len=8, max_len=128)
    result = identity_service().register(email, password)
    return success(result, 201)


@api_bp.post("/auth/login")
@auth_limit
def login():
    data = json_body()
    email = email_field(data)
    password = data.get("password")
    if not isinstance(password, str) or not password:
        raise ValidationError('"password" is required')
    return success(identity_service().login(email, password))


@api_bp.get("/auth/me")
@require_auth
def me():
    identity = current_identity()
    return success({
        "id": identity.user_id,
        "email": identity.email,
        "isAdmin": identity.email.lower() in current_app.config["ADMIN_EMAILS"],
    })


# ---------------------------------------------------------------- persons

def _get_person(session, person_id: int) -> Person:
    person = session.get(Person, person_id)
    if not person:
        raise NotFoundError("Person not found")
    return person


def _person_payload(session) -> tuple[Dict[str, Any], Dict[str, Any]]:
    """Validate a person body; returns (column values, JSON snapshot for the contribution)."""
    data = json_body()
    values = {
        "first_name": string_field(data, "firstName", required=True, min_len=1, max_len=100),
        "last_name": string_field(data, "lastName", required=True, min_len=1, max_len=100),
        "date_of_birth": date_field(data, "dateOfBirth"),
        "date_of_death": date_field(data, "dateOfDeath"),
        "cause_of_death": string_field(data, "causeOfDeath", max_len=255),
        "place_of_birth_id": id_field(data, "placeOfBirthId"),
        "place_of_death_id": id_field(data, "placeOfDeathId"),
        "cemetery_id": id_field(data, "cemeteryId"),
    }
    if values["date_of_birth"] and values["date_of_death"] and values["date_of_death"] < values["date_of_birth"]:
        raise ValidationError('"dateOfDeath" must not be before "dateOfBirth"')
    for key, model in (("place_of_birth_id", Location), ("place_of_death_id", Location), ("cemetery_id", Cemetery)):
        if values[key] is not None and session.get(model, values[key]) is None:
            raise ValidationError(f"{model.__name__} {values[key]} does not exist")

    snapshot = {
        "firstName": values["first_name"],
        "lastName": values["last_name"],
        "dateOfBirth": data.get("dateOfBirth"),
        "dateOfDeath": data.get("dateOfDeath"),
        "causeOfDeath": values["cause_of_death"],
        "placeOfBirthId": values["place_of_birth_id"],
        "placeOfDeathId": values["place_of_death_id"],
        "cemeteryId": values["cemetery_id"],
    }
    return values, {k: v for k, v in snapshot.items() if v is not None}


@api_bp.get("/persons")
def list_persons():
    page, limit = pagination_args()
    session = get_session()
    total = session.execute(select(func.count(Person.id))).scalar_one()
    persons = session.execute(
        select(Person)
        .order_by(Person.created_at.desc(), Person.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).scalars().all()
    return success([person_to_dict(p) for p in persons], pagination=pagination_meta(page, limit, total))


@api_bp.get("/persons/<int:person_id>")
def get_person(person_id: int):
    session = get_session()
    person = _get_person(session, person_id)
    planner = PersonSearchPlanner(session)
    return success(planner.enrich([person])[0])


@api_bp.post("/persons")
@require_auth
def create_person():
    session = get_session()
    values, snapshot = _person_payload(session)
    person = Person(**values)
    session.add(person)
    session.flush()
    record_contribution(session, ContributionType.PERSON_CREATE, person.id, snapshot, user_id=current_identity().user_id)
    session.commit()
    session.refresh(person)
    logger.info("Person %s created by user %s", person.id, current_identity().user_id)
    return success(person_to_dict(person), 201)


@api_bp.put("/persons/<int:person_id>")
@require_auth
def update_person(person_id: int):
    session = get_session()
    person = _get_person(session, person_id)
    values, snapshot = _person_payload(session)
    for key, value in values.items():
        setattr(person, key, value)
    record_contribution(session, ContributionType.PERSON_UPDATE, person.id, snapshot, user_id=current_identity().user_id)
    session.commit()
    session.refresh(person)
    return success(person_to_dict(person))


@api_bp.delete("/persons/<int:person_id>")
@require_auth
def delete_person(person_id: int):
    session = get_session()
    person = _get_person(session, person_id)
    session.delete(person)
    session.commit()
    logger.info("Person %s deleted by user %s", person_id, current_identity().user_id)
    return success({"id": person_id})


# ---------------------------------------------------------------- search

@api_bp.get("/search/persons")
@search_limit
def search_persons():
    q = (request.args.get("q") or "").strip() or None
    death_month = optional_int_arg("deathMonth", minimum=1, maximum=12)
    death_year = optional_int_arg("deathYear", minimum=1, maximum=9998)
    page, limit = pagination_args()
    filters = SearchFilters(q=q, death_month=death_month, death_year=death_year, page=page, limit=limit)

    planner = PersonSearchPlanner(get_session())
    result = planner.search(filters)
    return success(planner.enrich(result.persons), pagination=pagination_meta(page, limit, result.total))


# ---------------------------------------------------------------- memorials

def _memorial_for(session, person_id: int) -> Memorial | None:
    return session.execute(select(Memorial).where(Memorial.person_id == person_id)).scalar_one_or_none()


def _submitter_id() -> int | None:
    identity = optional_identity()
    return identity.user_id if identity else None


@api_bp.get("/memorials/<int:person_id>/remembrances")
def list_remembrances(person_id: int):
    session = get_session()
    rows = session.execute(
        select(Remembrance)
        .join(Memorial, Memorial.id == Remembrance.memorial_id)
        .where(
            Memorial.person_id == person_id,
            Remembrance.approved.is_(True),
            Remembrance.is_public.is_(True),
        )
        .order_by(Remembrance.created_at.desc(), Remembrance.id.desc())
    ).scalars().all()
    return success([remembrance_to_dict(r) for r in rows])


@api_bp.post("/memorials/<int:person_id>/remembrances")
def create_remembrance(person_id: int):
    data = json_body()
    message = string_field(data, "message", required=True, min_len=1, max_len=1000)
    author_name = string_field(data, "authorName", max_len=100)
    is_public = bool_field(data, "isPublic", default=True)

    service = SubmissionService(get_session())
    remembrance = service.submit_remembrance(person_id, message, author_name, is_public, user_id=_submitter_id())
    return success(remembrance_to_dict(remembrance), 201)


@api_bp.get("/memorials/<int:person_id>/offerings")
def list_offerings(person_id: int):
    session = get_session()
    memorial = _memorial_for(session, person_id)
    if memorial is None:
        return success({"totalCount": 0, "counts": {}, "recent": []})

    counts = {
        offering_type.value: count
        for offering_type, count in session.execute(
            select(VirtualOffering.offering_type, func.count(VirtualOffering.id))
            .where(VirtualOffering.memorial_id == memorial.id)
            .group_by(VirtualOffering.offering_type)
        ).all()
    }
    recent = session.execute(
        select(VirtualOffering)
        .where(VirtualOffering.memorial_id == memorial.id)
        .order_by(VirtualOffering.created_at.desc(), VirtualOffering.id.desc())
        .limit(RECENT_OFFERINGS)
    ).scalars().all()
    return success({
        "totalCount": sum(counts.values()),
        "counts": counts,
        "recent": [offering_to_dict(o) for o in recent],
    })


@api_bp.post("/memorials/<int:person_id>/offerings")
def create_offering(person_id: int):
    data = json_body()
    offering_type = enum_field(data, "offeringType", OfferingType)
    message = string_field(data, "message", max_len=500)
    author_name = string_field(data, "authorName", max_len=100)

    service = SubmissionService(get_session())
    offering = service.submit_offering(person_id, offering_type, message, author_name, user_id=_submitter_id())
    return success(offering_to_dict(offering), 201)


@api_bp.get("/memorials/<int:person_id>/reminders")
@require_auth
def list_reminders(person_id: int):
    session = get_session()
    rows = session.execute(
        select(MemorialReminder)
        .join(Memorial, Memorial.id == MemorialReminder.memorial_id)
        .where(
            MemorialReminder.user_id == current_identity().user_id,
            Memorial.person_id == person_id,
            MemorialReminder.active.is_(True),
        )
        .order_by(MemorialReminder.date.asc(), MemorialReminder.id.asc())
    ).scalars().all()
    return success([reminder_to_dict(r) for r in rows])


@api_bp.post("/memorials/<int:person_id>/reminders")
@require_auth
def create_reminder(person_id: int):
    data = json_body()
    title = string_field(data, "title", required=True, min_len=1, max_len=200)
    date = date_field(data, "date", required=True)
    frequency = enum_field(data, "frequency", ReminderFrequency, default=ReminderFrequency.ONCE)

    session = get_session()
    memorial = get_or_create_memorial(session, person_id)
    reminder = MemorialReminder(
        user_id=current_identity().user_id,
        memorial_id=memorial.id,
        title=title,
        date=date,
        frequency=frequency,
    )
    session.add(reminder)
    session.commit()
    session.refresh(reminder)
    return success(reminder_to_dict(reminder), 201)


@api_bp.delete("/memorials/reminders/<int:reminder_id>")
@require_auth
def delete_reminder(reminder_id: int):
    session = get_session()
    reminder = session.get(MemorialReminder, reminder_id)
    # Non-owners get the same 404 as a missing id.
    if not reminder or reminder.user_id != current_identity().user_id:
        raise NotFoundError("Reminder not found")
    reminder.active = False
    session.commit()
    return success({"id": reminder_id})


# ---------------------------------------------------------------- locations

@api_bp.get("/locations")
def list_locations():
    session = get_session()
    rows = session.execute(select(Location).order_by(Location.name, Location.id)).scalars().all()
    return success([location_to_dict(loc) for loc in rows])


@api_bp.post("/locations")
@require_auth
def create_location():
    data = json_body()
    location = Location(
        name=string_field(data, "name", required=True, min_len=1, max_len=200),
        city=string_field(data, "city", max_len=100),
        country=string_field(data, "country", required=True, min_len=1, max_len=100),
    )
    session = get_session()
    session.add(location)
    session.commit()
    session.refresh(location)
    return success(location_to_dict(location), 201)


@api_bp.get("/locations/cemeteries")
def list_cemeteries():
    session = get_session()
    rows = session.execute(
        select(Cemetery).options(selectinload(Cemetery.location)).order_by(Cemetery.name, Cemetery.id)
    ).scalars().all()
    return success([cemetery_to_dict(c) for c in rows])


@api_bp.post("/locations/cemeteries")
@require_auth
def create_cemetery():
    data = json_body()
    name = string_field(data, "name", required=True, min_len=1, max_len=200)
    location_id = id_field(data, "locationId")

    session = get_session()
    if location_id is not None and session.get(Location, location_id) is None:
        raise ValidationError(f"Location {location_id} does not exist")
    cemetery = Cemetery(name=name, location_id=location_id)
    session.add(cemetery)
    session.commit()
    session.refresh(cemetery)
    return success(cemetery_to_dict(cemetery), 201)


# ---------------------------------------------------------------- family

@api_bp.get("/family/<int:person_id>")
def list_family(person_id: int):
    session = get_session()
    rows = session.execute(
        select(FamilyRelationship)
        .where(or_(
            FamilyRelationship.person_id == person_id,
            FamilyRelationship.related_person_id == person_id,
        ))
        .options(
            selectinload(FamilyRelationship.person),
            selectinload(FamilyRelationship.related_person),
        )
        .order_by(FamilyRelationship.created_at, FamilyRelationship.id)
    ).scalars().all()
    return success([relationship_to_dict(rel, include_persons=True) for rel in rows])


@api_bp.post("/family/<int:person_id>")
@require_auth
def create_family_relationship(person_id: int):
    data = json_body()
    related_person_id = id_field(data, "relatedPersonId", required=True)
    relationship_type = enum_field(data, "relationshipType", RelationshipType)
    if related_person_id == person_id:
        raise ValidationError("A person cannot be related to themselves")

    session = get_session()
    _get_person(session, person_id)
    _get_person(session, related_person_id)

    # Duplicate and mirrored edges are allowed.
    rel = FamilyRelationship(
        person_id=person_id,
        related_person_id=related_person_id,
        relationship_type=relationship_type,
    )
    session.add(rel)
    session.commit()
    session.refresh(rel)
    return success(relationship_to_dict(rel), 201)


# ---------------------------------------------------------------- photos

@api_bp.get("/photos/<int:person_id>")
def list_photos(person_id: int):
    session = get_session()
    rows = session.execute(
        select(Photo)
        .where(Photo.person_id == person_id)
        .order_by(Photo.created_at.desc(), Photo.id.desc())
    ).scalars().all()
    return success([photo_to_dict(p) for p in rows])


@api_bp.post("/photos/<int:person_id>")
@upload_limit
@require_auth
def upload_photo(person_id: int):
    f = request.files.get("photo")
    if not f or not f.filename:
        raise ValidationError("No file uploaded", code="NO_FILE")

    if not is_allowed_image(f.mimetype, f.filename):
        raise ValidationError("Only JPG, PNG, or WebP images are allowed", code="INVALID_FILE_TYPE")

    content = f.read(MAX_PHOTO_BYTES + 1)
    if len(content) > MAX_PHOTO_BYTES:
        raise PayloadTooLarge()

    caption = request.form.get("caption")
    caption = caption.strip() if isinstance(caption, str) else None
    if caption and len(caption) > CAPTION_MAX:
        raise ValidationError(f"Caption must be {CAPTION_MAX} characters or less")
    is_primary = request.form.get("isPrimary") == "true"

    session = get_session()
    _get_person(session, person_id)

    upload_dir = current_app.config["UPLOAD_DIR"]
    os.makedirs(upload_dir, exist_ok=True)
    stored_name = generate_filename(f.filename)
    path = os.path.join(upload_dir, stored_name)
    with open(path, "wb") as out:
        out.write(content)

    written = [path]
    url = f"/uploads/{stored_name}"
    thumbnail_url = url
    thumb_result = create_thumbnail(path, upload_dir, os.path.splitext(stored_name)[0])
    if thumb_result:
        written.append(thumb_result[0])
        thumbnail_url = f"/uploads/{os.path.basename(thumb_result[0])}"

    try:
        if is_primary:
            session.execute(
                update(Photo).where(Photo.person_id == person_id).values(is_primary=False)
            )
        photo = Photo(
            person_id=person_id,
            url=url,
            thumbnail_url=thumbnail_url,
            caption=caption or None,
            is_primary=is_primary,
        )
        session.add(photo)
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        # No row points at these files.
        for written_path in written:
            if os.path.exists(written_path):
                os.remove(written_path)
        logger.error("Photo upload for person %s not saved; removed %s", person_id, stored_name)
        raise
    session.refresh(photo)
    logger.info("Photo %s stored as %s for person %s", photo.id, stored_name, person_id)
    return success(photo_to_dict(photo), 201)


@api_bp.put("/photos/<int:photo_id>/primary")
@require_auth
def set_primary_photo(photo_id: int):
    session = get_session()
    photo = session.get(Photo, photo_id)
    if not photo:
        raise NotFoundError("Photo not found")

    # Both statements commit together, leaving exactly one primary.
    session.execute(
        update(Photo).where(Photo.person_id == photo.person_id).values(is_primary=False)
    )
    session.execute(
        update(Photo).where(Photo.id == photo.id).values(is_primary=True)
    )
    session.commit()
    session.refresh(photo)
    return success(photo_to_dict(photo))


# ---------------------------------------------------------------- admin

def _reviewer() -> str:
    return current_identity().email


@api_bp.get("/admin/submissions")
@require_admin
def admin_submissions():
    queue = ModerationService(get_session()).pending()
    return success({
        "contributions": [contribution_to_dict(c) for c in queue["contributions"]],
        "remembrances": [remembrance_to_dict(r) for r in queue["remembrances"]],
    })


@api_bp.put("/admin/remembrances/<int:remembrance_id>/approve")
@require_admin
def admin_approve_remembrance(remembrance_id: int):
    remembrance = ModerationService(get_session()).approve_remembrance(remembrance_id, _reviewer())
    return success(remembrance_to_dict(remembrance))


@api_bp.put("/admin/contributions/<int:contribution_id>/approve")
@require_admin
def admin_approve_contribution(contribution_id: int):
    contribution = ModerationService(get_session()).set_contribution_status(
        contribution_id, ContributionStatus.APPROVED, _reviewer()
    )
    return success(contribution_to_dict(contribution))


@api_bp.put("/admin/contributions/<int:contribution_id>/reject")
@require_admin
def admin_reject_contribution(contribution_id: int):
    contribution = ModerationService(get_session()).set_contribution_status(
        contribution_id, ContributionStatus.REJECTED, _reviewer()
    )
    return success(contribution_to_dict(contribution))
