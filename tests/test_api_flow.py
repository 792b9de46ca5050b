from fastapi.testclient import TestClient

from app.core.security import create_access_token
from app.db.session import get_db
from app.main import app
from app.services.razorpay_service import get_payment_gateway
from tests.support import DatabaseTestCase, FakeGateway, create_user, tuition_fields


class ApiFlowTests(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        self.gateway = FakeGateway()

        def override_get_db():
            db = self._session_factory()
            try:
                yield db
                db.commit()
            except Exception:
                db.rollback()
                raise
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_payment_gateway] = lambda: self.gateway
        self.client = TestClient(app)

        admin = create_user(self.db, "admin@tutorlink.dev", role="admin", full_name="Admin")
        self.admin_headers = self._bearer(create_access_token(admin.id, admin.email, admin.role))
        self.db.close()

    def tearDown(self):
        app.dependency_overrides.clear()
        super().tearDown()

    @staticmethod
    def _bearer(token):
        return {"Authorization": f"Bearer {token}"}

    def _register(self, email, full_name):
        res = self.client.post(
            "/api/v1/auth/register",
            json={"email": email, "password": "s3cret-pass", "full_name": full_name},
        )
        self.assertEqual(res.status_code, 201, res.text)
        return self._bearer(res.json()["access_token"])

    def _approved_tutor(self, email="karim@tutorlink.dev"):
        headers = self._register(email, "Karim")
        res = self.client.post(
            "/api/v1/tutors",
            json={
                "name": "Karim",
                "id_card_url": "https://files.tutorlink.dev/karim.png",
                "subjects": ["Math"],
                "district": "Dhaka",
                "phone": "01711111111",
            },
            headers=headers,
        )
        self.assertEqual(res.status_code, 201, res.text)
        tutor_id = res.json()["id"]
        res = self.client.patch(
            f"/api/v1/tutors/{tutor_id}", json={"status": "approved"}, headers=self.admin_headers
        )
        self.assertEqual(res.status_code, 200, res.text)
        return headers, tutor_id

    def _post_tuition(self, headers, key="post-1"):
        return self.client.post(
            "/api/v1/tuitions",
            json=tuition_fields(),
            headers={**headers, "Idempotency-Key": key},
        )

    # ── Full lifecycle ────────────────────────────────────────────────────────

    def test_post_match_pay_complete_review(self):
        student = self._register("rahim@tutorlink.dev", "Rahim")
        tutor, tutor_id = self._approved_tutor()

        first = self._post_tuition(student)
        replay = self._post_tuition(student)
        self.assertEqual(first.status_code, 201)
        self.assertEqual(replay.status_code, 200)
        tuition_id = first.json()["id"]
        self.assertEqual(replay.json()["id"], tuition_id)

        too_low = self.client.post(
            "/api/v1/applications", json={"tuition_id": tuition_id, "salary": 2999}, headers=tutor
        )
        self.assertEqual(too_low.status_code, 400)
        self.assertEqual(too_low.json()["detail"]["code"], "InvalidArgumentException")

        applied = self.client.post(
            "/api/v1/applications", json={"tuition_id": tuition_id, "salary": 3000}, headers=tutor
        )
        self.assertEqual(applied.status_code, 201, applied.text)
        application_id = applied.json()["id"]

        accepted = self.client.patch(
            f"/api/v1/applications/{application_id}", json={"status": "accepted"}, headers=student
        )
        self.assertEqual(accepted.status_code, 200, accepted.text)
        self.assertEqual(accepted.json()["status"], "accepted")

        tuition = self.client.get(f"/api/v1/tuitions/{tuition_id}", headers=tutor).json()
        self.assertEqual(tuition["status"], "assigned")
        self.assertEqual(tuition["salary"], 3000)

        checkout = self.client.post(
            "/api/v1/payment-checkout-session", json={"tuition_id": tuition_id}, headers=student
        )
        self.assertEqual(checkout.status_code, 200, checkout.text)
        session_id = checkout.json()["session_id"]
        self.gateway.pay(session_id)

        confirm = self.client.patch(f"/api/v1/payment-success?session_id={session_id}", headers=student)
        again = self.client.patch(f"/api/v1/payment-success?session_id={session_id}", headers=student)
        self.assertEqual(confirm.status_code, 200, confirm.text)
        self.assertFalse(confirm.json()["already_recorded"])
        self.assertEqual(confirm.json()["amount_paise"], 300000)
        self.assertEqual(confirm.json()["platform_fee_paise"], 180000)
        self.assertEqual(confirm.json()["tutor_earning_paise"], 120000)
        self.assertTrue(again.json()["already_recorded"])
        self.assertEqual(again.json()["payment_id"], confirm.json()["payment_id"])

        done = self.client.patch(f"/api/v1/tuitions/tutor/{tuition_id}", headers=tutor)
        self.assertEqual(done.status_code, 200, done.text)
        self.assertEqual(done.json()["status"], "completed")

        review = self.client.post(
            "/api/v1/reviews", json={"tuition_id": tuition_id, "rating": 5, "review": "Great"}, headers=student
        )
        duplicate = self.client.post(
            "/api/v1/reviews", json={"tuition_id": tuition_id, "rating": 1}, headers=student
        )
        self.assertEqual(review.status_code, 201, review.text)
        self.assertEqual(duplicate.status_code, 409)

        profile = self.client.get(f"/api/v1/tutors/{tutor_id}").json()
        self.assertEqual(profile["rating_count"], 1)
        self.assertEqual(profile["average_rating"], 5.0)
        self.assertNotIn("id_card_url", profile)

        inbox = self.client.get("/api/v1/notifications", headers=tutor).json()
        types = {n["type"] for n in inbox["notifications"]}
        self.assertTrue({"PROFILE_APPROVED", "APPLICATION_ACCEPTED", "TUITION_STARTED", "NEW_REVIEW"} <= types)
        self.assertEqual(inbox["unread_count"], inbox["total"])

        self.client.patch("/api/v1/notifications/read-all", headers=tutor)
        self.assertEqual(self.client.get("/api/v1/notifications", headers=tutor).json()["unread_count"], 0)

    # ── Guards and error shape ────────────────────────────────────────────────

    def test_unapproved_tutor_cannot_apply(self):
        student = self._register("rahim@tutorlink.dev", "Rahim")
        tuition_id = self._post_tuition(student).json()["id"]
        pending = self._register("pending@tutorlink.dev", "Pending")
        self.client.post(
            "/api/v1/tutors",
            json={"name": "Pending", "id_card_url": "x", "subjects": ["Math"], "district": "Dhaka"},
            headers=pending,
        )

        res = self.client.post(
            "/api/v1/applications", json={"tuition_id": tuition_id, "salary": 4000}, headers=pending
        )
        self.assertEqual(res.status_code, 403)

    def test_domain_errors_carry_code_and_details(self):
        student = self._register("rahim@tutorlink.dev", "Rahim")
        tuition_id = self._post_tuition(student).json()["id"]
        self.client.patch(f"/api/v1/tuitions/{tuition_id}", json={"status": "closed"}, headers=student)

        res = self.client.patch(f"/api/v1/tuitions/{tuition_id}", json={"status": "open"}, headers=student)

        self.assertEqual(res.status_code, 400)
        detail = res.json()["detail"]
        self.assertEqual(detail["code"], "InvalidTransitionException")
        self.assertEqual(detail["details"], {"current": "closed", "requested": "open"})
        self.assertIn("message", detail)

    def test_stranger_cannot_read_tuition(self):
        student = self._register("rahim@tutorlink.dev", "Rahim")
        stranger = self._register("stranger@tutorlink.dev", "Stranger")
        tuition_id = self._post_tuition(student).json()["id"]

        self.assertEqual(self.client.get(f"/api/v1/tuitions/{tuition_id}", headers=stranger).status_code, 403)
        self.assertEqual(
            self.client.get(f"/api/v1/tuitions/{tuition_id}", headers=self.admin_headers).status_code, 200
        )

    def test_auth_failures(self):
        self._register("rahim@tutorlink.dev", "Rahim")

        duplicate = self.client.post(
            "/api/v1/auth/register",
            json={"email": "RAHIM@tutorlink.dev", "password": "another-pass", "full_name": "R"},
        )
        wrong = self.client.post(
            "/api/v1/auth/login", json={"email": "rahim@tutorlink.dev", "password": "nope-nope"}
        )
        login = self.client.post(
            "/api/v1/auth/login", json={"email": "rahim@tutorlink.dev", "password": "s3cret-pass"}
        )

        self.assertEqual(duplicate.status_code, 409)
        self.assertEqual(wrong.status_code, 401)
        self.assertEqual(login.status_code, 200)
        self.assertEqual(login.json()["role"], "student")
        self.assertEqual(self.client.get("/api/v1/notifications").status_code, 401)

    def test_health(self):
        res = self.client.get("/health")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["status"], "ok")
