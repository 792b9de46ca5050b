import threading
import uuid
from unittest import mock

from app.core.exceptions import (
    ConflictException,
    ForbiddenException,
    InvalidArgumentException,
    InvalidStateException,
    NotFoundException,
)
from app.models.application import Application
from app.models.notification import Notification
from app.models.tuition import Tuition
from app.services import matching_service, tuition_service
from tests.support import DatabaseTestCase, create_tutor, create_user, post_tuition


class ApplyTests(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        self.student = create_user(self.db, "student@example.com", full_name="Rahim")
        self.tuition = post_tuition(self.db, self.student)  # Dhaka, budget [3000, 5000]
        tutor_user = create_user(self.db, "tutor@example.com", full_name="Karim")
        self.tutor = create_tutor(self.db, tutor_user, district="Dhaka")

    def test_apply_creates_pending_application_with_snapshot(self):
        application = matching_service.apply_to_tuition(
            self.db, self.tutor, self.tuition.id, 4000, "I teach physics"
        )

        self.assertEqual(application.status, "pending")
        self.assertEqual(application.salary, 4000)
        self.assertEqual(application.student_id, self.student.id)
        self.assertEqual(application.tutor_name, "Karim")
        self.assertEqual(application.qualification, "BSc")
        self.assertEqual(application.subjects, ["Math", "Physics"])
        self.assertEqual(application.tuition_time, "5 PM")

    def test_apply_notifies_tuition_owner(self):
        matching_service.apply_to_tuition(self.db, self.tutor, self.tuition.id, 4000)

        notes = self.db.query(Notification).filter(Notification.user_email == "student@example.com").all()
        self.assertEqual([n.notification_type for n in notes], ["NEW_APPLICATION"])

    def test_budget_bounds_are_inclusive(self):
        for salary in (3000, 5000):
            tutor_user = create_user(self.db, f"t{salary}@example.com")
            tutor = create_tutor(self.db, tutor_user)
            matching_service.apply_to_tuition(self.db, tutor, self.tuition.id, salary)

        for salary in (2999, 6000):
            with self.assertRaises(InvalidArgumentException):
                matching_service.apply_to_tuition(self.db, self.tutor, self.tuition.id, salary)

    def test_duplicate_application_conflicts(self):
        matching_service.apply_to_tuition(self.db, self.tutor, self.tuition.id, 4000)

        with self.assertRaises(ConflictException):
            matching_service.apply_to_tuition(self.db, self.tutor, self.tuition.id, 4500)
        self.assertEqual(self.db.query(Application).count(), 1)

    def test_missing_tuition_is_not_found(self):
        with self.assertRaises(NotFoundException):
            matching_service.apply_to_tuition(self.db, self.tutor, uuid.uuid4(), 4000)

    def test_closed_tuition_is_not_open(self):
        tuition_service.update_tuition(self.db, self.tuition.id, self.student.id, {}, status_request="closed")

        with self.assertRaises(InvalidStateException):
            matching_service.apply_to_tuition(self.db, self.tutor, self.tuition.id, 4000)

    def test_other_district_is_forbidden(self):
        far_user = create_user(self.db, "far@example.com")
        far_tutor = create_tutor(self.db, far_user, district="Sylhet")

        with self.assertRaises(ForbiddenException):
            matching_service.apply_to_tuition(self.db, far_tutor, self.tuition.id, 4000)

    def test_tutor_cannot_apply_to_own_tuition(self):
        own_tuition = post_tuition(self.db, self.student)
        # The poster later became a tutor
        self_tutor = create_tutor(self.db, self.student)

        with self.assertRaises(ForbiddenException):
            matching_service.apply_to_tuition(self.db, self_tutor, own_tuition.id, 4000)


class DecideTests(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        self.student = create_user(self.db, "student@example.com", full_name="Rahim")
        self.tuition = post_tuition(self.db, self.student)
        self.tutors = []
        self.applications = []
        for i in range(3):
            user = create_user(self.db, f"tutor{i}@example.com", full_name=f"Tutor {i}")
            tutor = create_tutor(self.db, user, phone=f"0170000000{i}")
            self.tutors.append(tutor)
            self.applications.append(
                matching_service.apply_to_tuition(self.db, tutor, self.tuition.id, 3500 + i * 500)
            )

    def _status(self, application):
        return self.db.get(Application, application.id, populate_existing=True).status

    def test_accept_assigns_tuition_and_rejects_competitors(self):
        winner = self.applications[1]

        accepted = matching_service.decide_application(self.db, winner.id, "accepted", self.student)

        self.assertEqual(accepted.status, "accepted")
        self.assertIsNotNone(accepted.decided_at)
        self.assertEqual(
            [self._status(a) for a in self.applications],
            ["rejected", "accepted", "rejected"],
        )

        tuition = tuition_service.get_tuition(self.db, self.tuition.id)
        self.assertEqual(tuition.status, "assigned")
        self.assertEqual(tuition.tutor_id, self.tutors[1].id)
        self.assertEqual(tuition.tutor_email, "tutor1@example.com")
        self.assertEqual(tuition.tutor_phone, "01700000001")
        self.assertEqual(tuition.salary, 4000)
        self.assertEqual(tuition.assigned_application_id, winner.id)
        self.assertIsNotNone(tuition.assigned_at)

    def test_accept_notifies_accepted_tutor(self):
        matching_service.decide_application(self.db, self.applications[0].id, "accepted", self.student)

        types = [
            n.notification_type for n in self.db.query(Notification).filter(
                Notification.user_email == "tutor0@example.com"
            )
        ]
        self.assertEqual(types, ["APPLICATION_ACCEPTED"])

    def test_second_accept_conflicts(self):
        matching_service.decide_application(self.db, self.applications[0].id, "accepted", self.student)

        with self.assertRaises(ConflictException):
            matching_service.decide_application(self.db, self.applications[2].id, "accepted", self.student)

        accepted = self.db.query(Application).filter(Application.status == "accepted").count()
        self.assertEqual(accepted, 1)

    def test_accept_on_assigned_tuition_with_pending_application_conflicts(self):
        # A pending application that slipped in past the bulk reject
        matching_service.decide_application(self.db, self.applications[0].id, "accepted", self.student)
        self.db.query(Application).filter(Application.id == self.applications[2].id).update(
            {"status": "pending"}, synchronize_session=False
        )
        self.db.commit()

        with self.assertRaises(ConflictException) as ctx:
            matching_service.decide_application(self.db, self.applications[2].id, "accepted", self.student)
        self.assertEqual(ctx.exception.details["status"], "assigned")
        self.assertEqual(self._status(self.applications[2]), "pending")

    def test_application_withdrawn_mid_accept_leaves_tuition_open(self):
        # The application is rejected after accept has read it as pending
        target = self.applications[1]
        original_get = matching_service._get_application
        calls = {"n": 0}

        def stale_get(db, application_id):
            application = original_get(db, application_id)
            if calls["n"] == 0:
                db.query(Application).filter(Application.id == application_id).update(
                    {"status": "rejected"}, synchronize_session=False
                )
                db.commit()
            calls["n"] += 1
            return application

        with mock.patch.object(matching_service, "_get_application", side_effect=stale_get):
            with self.assertRaises(ConflictException):
                matching_service.decide_application(self.db, target.id, "accepted", self.student)

        tuition = tuition_service.get_tuition(self.db, self.tuition.id)
        self.assertEqual(tuition.status, "open")
        self.assertIsNone(tuition.tutor_id)
        self.assertIsNone(tuition.salary)
        self.assertIsNone(tuition.assigned_application_id)
        self.assertEqual(
            [self._status(a) for a in self.applications],
            ["pending", "rejected", "pending"],
        )
        self.assertEqual(self.db.query(Application).filter(Application.status == "accepted").count(), 0)

    def test_reject_only_touches_one_application(self):
        rejected = matching_service.decide_application(self.db, self.applications[0].id, "rejected", self.student)

        self.assertEqual(rejected.status, "rejected")
        self.assertEqual([self._status(a) for a in self.applications[1:]], ["pending", "pending"])
        self.assertEqual(tuition_service.get_tuition(self.db, self.tuition.id).status, "open")

    def test_decided_application_cannot_be_decided_again(self):
        matching_service.decide_application(self.db, self.applications[0].id, "rejected", self.student)

        with self.assertRaises(InvalidStateException):
            matching_service.decide_application(self.db, self.applications[0].id, "accepted", self.student)
        with self.assertRaises(InvalidStateException):
            matching_service.decide_application(self.db, self.applications[0].id, "rejected", self.student)

    def test_unknown_decision_is_invalid(self):
        with self.assertRaises(InvalidArgumentException):
            matching_service.decide_application(self.db, self.applications[0].id, "maybe", self.student)

    def test_only_owner_may_decide(self):
        stranger = create_user(self.db, "stranger@example.com")

        with self.assertRaises(ForbiddenException):
            matching_service.decide_application(self.db, self.applications[0].id, "accepted", stranger)
        self.assertEqual(tuition_service.get_tuition(self.db, self.tuition.id).status, "open")

    def test_failed_notification_does_not_undo_accept(self):
        with mock.patch(
            "app.services.notification_service.Notification",
            side_effect=RuntimeError("notification store down"),
        ):
            accepted = matching_service.decide_application(
                self.db, self.applications[0].id, "accepted", self.student
            )

        self.assertEqual(accepted.status, "accepted")
        self.assertEqual(tuition_service.get_tuition(self.db, self.tuition.id).status, "assigned")


class CancelTests(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        self.student = create_user(self.db, "student@example.com")
        self.tuition = post_tuition(self.db, self.student)
        self.tutor_user = create_user(self.db, "tutor@example.com")
        self.tutor = create_tutor(self.db, self.tutor_user)
        self.application = matching_service.apply_to_tuition(self.db, self.tutor, self.tuition.id, 4000)

    def test_tutor_cancels_pending(self):
        matching_service.cancel_application(self.db, self.application.id, self.tutor_user)
        self.assertEqual(self.db.query(Application).count(), 0)

    def test_student_cancels_rejected(self):
        matching_service.decide_application(self.db, self.application.id, "rejected", self.student)
        matching_service.cancel_application(self.db, self.application.id, self.student)
        self.assertEqual(self.db.query(Application).count(), 0)

    def test_accepted_application_cannot_be_cancelled(self):
        matching_service.decide_application(self.db, self.application.id, "accepted", self.student)

        with self.assertRaises(InvalidStateException):
            matching_service.cancel_application(self.db, self.application.id, self.tutor_user)
        self.assertEqual(self.db.query(Application).count(), 1)

    def test_stranger_cannot_cancel(self):
        stranger = create_user(self.db, "stranger@example.com")

        with self.assertRaises(ForbiddenException):
            matching_service.cancel_application(self.db, self.application.id, stranger)

    def test_missing_application_is_not_found(self):
        with self.assertRaises(NotFoundException):
            matching_service.cancel_application(self.db, uuid.uuid4(), self.tutor_user)


class ConcurrentAcceptTests(DatabaseTestCase):
    immediate_transactions = True

    def test_two_concurrent_accepts_yield_one_assignment(self):
        student = create_user(self.db, "student@example.com")
        tuition = post_tuition(self.db, student)
        application_ids = []
        for i in range(2):
            user = create_user(self.db, f"tutor{i}@example.com")
            tutor = create_tutor(self.db, user)
            application_ids.append(
                matching_service.apply_to_tuition(self.db, tutor, tuition.id, 4000).id
            )
        self.db.close()

        barrier = threading.Barrier(2)
        accepted, conflicts, errors = [], [], []

        def worker(application_id):
            db = self._session_factory()
            try:
                barrier.wait(timeout=5)
                matching_service.decide_application(db, application_id, "accepted", student)
                accepted.append(application_id)
            except ConflictException:
                conflicts.append(application_id)
            except Exception as exc:  # pragma: no cover - test diagnostic path
                errors.append(exc)
            finally:
                db.close()

        threads = [threading.Thread(target=worker, args=(app_id,)) for app_id in application_ids]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        self.assertEqual(errors, [])
        self.assertEqual(len(accepted), 1)
        self.assertEqual(len(conflicts), 1)

        db = self._session_factory()
        try:
            statuses = {
                a.id: a.status for a in db.query(Application).all()
            }
            self.assertEqual(sorted(statuses.values()), ["accepted", "rejected"])
            tuition_row = db.get(Tuition, tuition.id)
            self.assertEqual(tuition_row.status, "assigned")
            self.assertEqual(tuition_row.assigned_application_id, accepted[0])
        finally:
            db.close()
