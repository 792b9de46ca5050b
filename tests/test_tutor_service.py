import uuid

from app.core.capabilities import APPLY, capabilities_for
from app.core.exceptions import (
    ConflictException,
    ForbiddenException,
    InvalidArgumentException,
    NotFoundException,
)
from app.models.notification import Notification
from app.models.user import User
from app.services import tutor_service
from tests.support import DatabaseTestCase, create_tutor, create_user


def _profile(**overrides):
    fields = {
        "name": "Karim",
        "phone": "01711111111",
        "qualification": "BSc in Physics",
        "institution": "BUET",
        "subjects": ["Physics", "Math"],
        "district": "Dhaka",
        "id_card_url": "https://files.example.com/karim-id.png",
    }
    fields.update(overrides)
    return fields


class SubmitProfileTests(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        self.user = create_user(self.db, "karim@example.com", full_name="Karim")
        self.admins = [
            create_user(self.db, "admin1@example.com", role="admin"),
            create_user(self.db, "admin2@example.com", role="admin"),
        ]

    def test_submit_creates_pending_profile(self):
        tutor = tutor_service.submit_tutor_profile(self.db, self.user, _profile())

        self.assertEqual(tutor.status, "pending")
        self.assertEqual(tutor.email, "karim@example.com")
        self.assertEqual(tutor.user_id, self.user.id)
        self.assertEqual(tutor.subjects, ["Physics", "Math"])
        self.assertEqual(tutor.rating_count, 0)
        self.assertNotIn(APPLY, capabilities_for(self.user, tutor))

    def test_every_admin_is_notified(self):
        tutor_service.submit_tutor_profile(self.db, self.user, _profile())

        recipients = sorted(
            n.user_email for n in self.db.query(Notification).filter(
                Notification.notification_type == "TUTOR_APPLICATION"
            )
        )
        self.assertEqual(recipients, ["admin1@example.com", "admin2@example.com"])

    def test_second_profile_conflicts(self):
        tutor_service.submit_tutor_profile(self.db, self.user, _profile())

        with self.assertRaises(ConflictException):
            tutor_service.submit_tutor_profile(self.db, self.user, _profile(name="Karim 2"))

    def test_required_fields_are_reported(self):
        with self.assertRaises(InvalidArgumentException) as ctx:
            tutor_service.submit_tutor_profile(
                self.db, self.user, _profile(id_card_url="", subjects=[])
            )
        self.assertEqual(ctx.exception.details["missing"], ["id_card_url", "subjects"])

    def test_unknown_fields_are_ignored(self):
        tutor = tutor_service.submit_tutor_profile(
            self.db, self.user, _profile(status="approved", rating_sum=50)
        )
        self.assertEqual(tutor.status, "pending")
        self.assertEqual(tutor.rating_sum, 0)


class ReviewProfileTests(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        self.admin = create_user(self.db, "admin@example.com", role="admin")
        self.user = create_user(self.db, "karim@example.com")
        self.tutor = create_tutor(self.db, self.user, status="pending")

    def _user(self):
        return self.db.get(User, self.user.id, populate_existing=True)

    def test_approval_grants_apply_and_promotes_role(self):
        tutor = tutor_service.review_tutor(self.db, self.tutor.id, self.admin, "approved")

        self.assertEqual(tutor.status, "approved")
        self.assertIsNotNone(tutor.reviewed_at)
        user = self._user()
        self.assertEqual(user.role, "tutor")
        self.assertIn(APPLY, capabilities_for(user, tutor))

    def test_rejection_revokes_apply_and_restores_student_role(self):
        tutor_service.review_tutor(self.db, self.tutor.id, self.admin, "approved")
        tutor = tutor_service.review_tutor(self.db, self.tutor.id, self.admin, "rejected")

        user = self._user()
        self.assertEqual(tutor.status, "rejected")
        self.assertEqual(user.role, "student")
        self.assertNotIn(APPLY, capabilities_for(user, tutor))

    def test_tutor_is_notified_of_decision(self):
        tutor_service.review_tutor(self.db, self.tutor.id, self.admin, "approved")

        types = [
            n.notification_type for n in self.db.query(Notification).filter(
                Notification.user_email == "karim@example.com"
            )
        ]
        self.assertEqual(types, ["PROFILE_APPROVED"])

    def test_non_admin_is_forbidden(self):
        with self.assertRaises(ForbiddenException):
            tutor_service.review_tutor(self.db, self.tutor.id, self.user, "approved")
        self.assertEqual(tutor_service.get_tutor(self.db, self.tutor.id).status, "pending")

    def test_unknown_decision_is_invalid(self):
        with self.assertRaises(InvalidArgumentException):
            tutor_service.review_tutor(self.db, self.tutor.id, self.admin, "pending")

    def test_missing_tutor_is_not_found(self):
        with self.assertRaises(NotFoundException):
            tutor_service.review_tutor(self.db, uuid.uuid4(), self.admin, "approved")

    def test_average_rating_from_aggregate(self):
        self.tutor.rating_sum = 9
        self.tutor.rating_count = 2
        self.db.commit()

        self.assertEqual(tutor_service.get_tutor(self.db, self.tutor.id).average_rating, 4.5)
