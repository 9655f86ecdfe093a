from sqlalchemy import select

from memorial.db import get_database
from memorial.models import Contribution, ContributionStatus, ContributionType
from memorial.validation import MAX_PAGE
from tests.base import MemorialTestCase


class TestPersons(MemorialTestCase):
    def setUp(self):
        super().setUp()
        self.token = self.register()

    def contributions(self):
        with self.app.app_context():
            session = get_database(self.app).session()
            try:
                return [
                    (c.type, c.person_id, c.status, c.data)
                    for c in session.execute(select(Contribution).order_by(Contribution.id)).scalars()
                ]
            finally:
                session.close()

    def test_create_and_get_person(self):
        person = self.create_person(
            self.token,
            dateOfBirth="1969-01-01",
            dateOfDeath="1989-05-12T00:00:00Z",
            causeOfDeath="Perished during the journey",
        )
        self.assertIsInstance(person["id"], int)
        self.assertEqual(person["dateOfDeath"], "1989-05-12T00:00:00.000Z")

        r = self.client.get(f"/api/v1/persons/{person['id']}")
        self.assertEqual(r.status_code, 200)
        data = r.get_json()["data"]
        self.assertEqual(data["firstName"], "Lan")
        self.assertEqual(data["photos"], [])
        self.assertEqual(data["memorialActivity"], {"remembrances": 0, "offerings": 0})
        self.assertEqual(data["familyCount"], 0)
        self.assertIsNone(data["placeOfBirth"])

    def test_create_requires_auth(self):
        r = self.client.post("/api/v1/persons", json={"firstName": "Lan", "lastName": "Nguyen"})
        self.assertEqual(r.status_code, 401)

    def test_create_validation(self):
        headers = self.auth(self.token)
        r = self.client.post("/api/v1/persons", json={"firstName": "Lan"}, headers=headers)
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.get_json()["error"]["code"], "VALIDATION_ERROR")

        r = self.client.post(
            "/api/v1/persons",
            json={"firstName": "Lan", "lastName": "Nguyen", "dateOfDeath": "not-a-date"},
            headers=headers,
        )
        self.assertEqual(r.status_code, 400)

        r = self.client.post(
            "/api/v1/persons",
            json={"firstName": "Lan", "lastName": "Nguyen", "dateOfBirth": "1990-01-01", "dateOfDeath": "1980-01-01"},
            headers=headers,
        )
        self.assertEqual(r.status_code, 400)

        r = self.client.post(
            "/api/v1/persons",
            json={"firstName": "Lan", "lastName": "Nguyen", "placeOfBirthId": 999},
            headers=headers,
        )
        self.assertEqual(r.status_code, 400)

    def test_get_missing_person(self):
        r = self.client.get("/api/v1/persons/999")
        self.assertEqual(r.status_code, 404)
        self.assertEqual(r.get_json()["error"]["code"], "NOT_FOUND")

    def test_list_pagination(self):
        for i in range(25):
            self.create_person(self.token, firstName=f"Person{i:02d}")

        r = self.client.get("/api/v1/persons?page=2&limit=10")
        body = r.get_json()
        self.assertEqual(body["pagination"], {"page": 2, "limit": 10, "total": 25, "totalPages": 3})
        self.assertEqual(len(body["data"]), 10)

        r = self.client.get("/api/v1/persons?page=3&limit=10")
        self.assertEqual(len(r.get_json()["data"]), 5)

        # Newest first.
        first_page = self.client.get("/api/v1/persons?limit=100").get_json()["data"]
        ids = [p["id"] for p in first_page]
        self.assertEqual(ids, sorted(ids, reverse=True))

        paged = []
        for page in (1, 2, 3):
            paged += [p["id"] for p in self.client.get(f"/api/v1/persons?page={page}&limit=10").get_json()["data"]]
        self.assertEqual(paged, ids)

    def test_pagination_params_are_clamped(self):
        self.create_person(self.token)
        body = self.client.get("/api/v1/persons?page=0&limit=1000").get_json()
        self.assertEqual(body["pagination"]["page"], 1)
        self.assertEqual(body["pagination"]["limit"], 100)

        body = self.client.get("/api/v1/persons?page=abc&limit=-5").get_json()
        self.assertEqual(body["pagination"]["page"], 1)
        self.assertEqual(body["pagination"]["limit"], 1)

    def test_empty_list_has_zero_pages(self):
        body = self.client.get("/api/v1/persons").get_json()
        self.assertEqual(body["data"], [])
        self.assertEqual(body["pagination"]["total"], 0)
        self.assertEqual(body["pagination"]["totalPages"], 0)

    def test_update_person_records_contribution(self):
        person = self.create_person(self.token)
        r = self.client.put(
            f"/api/v1/persons/{person['id']}",
            json={"firstName": "Lan", "lastName": "Tran", "dateOfDeath": "1989-05-12"},
            headers=self.auth(self.token),
        )
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.get_json()["data"]["lastName"], "Tran")

        rows = self.contributions()
        self.assertEqual([row[0] for row in rows], [ContributionType.PERSON_CREATE, ContributionType.PERSON_UPDATE])
        self.assertTrue(all(row[2] == ContributionStatus.PENDING for row in rows))
        self.assertEqual(rows[1][3]["lastName"], "Tran")

    def test_update_missing_person(self):
        r = self.client.put(
            "/api/v1/persons/42",
            json={"firstName": "A", "lastName": "B"},
            headers=self.auth(self.token),
        )
        self.assertEqual(r.status_code, 404)

    def test_delete_person_keeps_contribution_history(self):
        person = self.create_person(self.token)
        r = self.client.delete(f"/api/v1/persons/{person['id']}", headers=self.auth(self.token))
        self.assertEqual(r.status_code, 200)
        self.assertEqual(self.client.get(f"/api/v1/persons/{person['id']}").status_code, 404)

        rows = self.contributions()
        self.assertEqual(len(rows), 1)
        self.assertIsNone(rows[0][1])

    def test_delete_cascades_memorial_content(self):
        person = self.create_person(self.token)
        pid = person["id"]
        self.client.post(f"/api/v1/memorials/{pid}/offerings", json={"offeringType": "CANDLE"})
        self.client.delete(f"/api/v1/persons/{pid}", headers=self.auth(self.token))

        body = self.client.get(f"/api/v1/memorials/{pid}/offerings").get_json()["data"]
        self.assertEqual(body["totalCount"], 0)

    def test_huge_page_number_returns_empty_page(self):
        self.create_person(self.token)
        r = self.client.get("/api/v1/persons?page=99999999999999999999")
        self.assertEqual(r.status_code, 200)
        body = r.get_json()
        self.assertEqual(body["data"], [])
        self.assertEqual(body["pagination"]["page"], MAX_PAGE)
        self.assertEqual(body["pagination"]["total"], 1)
