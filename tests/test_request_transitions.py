import os
import unittest
from unittest.mock import patch

from sqlalchemy import create_engine, delete, func, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")

from app.core.config import settings
from app.models.client_request import ClientRequest
from app.models.lawyer_profile import LawyerProfile
from app.models.user import User
from app.services.request_errors import (
    LawyerNotFound,
    RequestConflict,
    RequestForbidden,
    RequestNotFound,
    RequestValidationFailed,
)
from app.services.request_status import (
    CANCEL_FAILED_DETAIL,
    accept_request,
    cancel_request,
    create_request,
    delete_request,
    reject_request,
    update_request,
)
from app.services.status_flow import is_terminal, source_statuses_for, transition_allowed


class RequestTransitionTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.engine = create_engine(
            "sqlite+pysqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        cls.SessionLocal = sessionmaker(bind=cls.engine, autocommit=False, autoflush=False)
        User.__table__.create(bind=cls.engine)
        LawyerProfile.__table__.create(bind=cls.engine)
        ClientRequest.__table__.create(bind=cls.engine)

    @classmethod
    def tearDownClass(cls):
        ClientRequest.__table__.drop(bind=cls.engine)
        LawyerProfile.__table__.drop(bind=cls.engine)
        User.__table__.drop(bind=cls.engine)
        cls.engine.dispose()

    def setUp(self):
        with self.SessionLocal() as db:
            db.execute(delete(ClientRequest))
            db.execute(delete(LawyerProfile))
            db.execute(delete(User))
            db.add_all(
                [
                    User(id="c1", role="client", first_name="Chloe", last_name="Roux", email="chloe@example.com"),
                    User(id="c2", role="client", first_name="Paul", last_name="Blanc", email="paul@example.com"),
                    User(id="u-lawyer-1", role="lawyer", first_name="Anna", last_name="Petit", email="anna@example.com"),
                    User(id="u-99", role="lawyer", first_name="Marc", last_name="Durand", email="marc@example.com"),
                ]
            )
            db.flush()
            db.add(LawyerProfile(id="profile-42", user_id="u-99"))
            db.commit()
        self.db = self.SessionLocal()

    def tearDown(self):
        self.db.close()

    def _create(self, **overrides):
        data = {"client_id": "c1", "lawyer_id": "u-lawyer-1", "title": "Lease dispute"}
        data.update(overrides)
        return create_request(self.db, data)

    def _request_count(self) -> int:
        return int(self.db.execute(select(func.count(ClientRequest.id))).scalar_one())

    def test_create_then_accept(self):
        row = self._create()
        self.assertEqual(row.status, "pending")
        self.assertEqual(row.lawyer_id, "u-lawyer-1")

        accepted = accept_request(self.db, row.id)
        self.assertEqual(accepted.status, "accepted")

    def test_create_with_profile_reference_stores_user_id(self):
        row = self._create(lawyer_id="profile-42")
        self.assertEqual(row.lawyer_id, "u-99")

    def test_create_with_unknown_lawyer_writes_nothing(self):
        with self.assertRaises(LawyerNotFound):
            self._create(lawyer_id="missing-lawyer")
        self.assertEqual(self._request_count(), 0)

    def test_create_requires_client_and_title(self):
        with self.assertRaises(RequestValidationFailed) as ctx:
            create_request(self.db, {"client_id": " ", "title": ""})
        self.assertIn("client_id", ctx.exception.detail)
        self.assertIn("title", ctx.exception.detail)
        self.assertEqual(self._request_count(), 0)

    def test_create_without_lawyer_is_an_open_request(self):
        row = self._create(lawyer_id=None)
        self.assertIsNone(row.lawyer_id)

    def test_create_normalizes_urgency_and_type(self):
        row = self._create(urgency="NORMAL", request_type="new_case")
        self.assertEqual(row.urgency, "medium")
        self.assertEqual(row.request_type, "new_case")
        with self.assertRaises(RequestValidationFailed):
            self._create(urgency="whenever")

    def test_create_uses_configured_default_urgency(self):
        with patch.object(settings, "REQUEST_DEFAULT_URGENCY", "high"):
            row = self._create()
        self.assertEqual(row.urgency, "high")

    def test_cancel_by_other_client_fails_and_leaves_row(self):
        row = self._create()
        with self.assertRaises(RequestNotFound) as ctx:
            cancel_request(self.db, row.id, "c2")
        self.assertEqual(ctx.exception.detail, CANCEL_FAILED_DETAIL)
        self.assertEqual(self.db.get(ClientRequest, row.id).status, "pending")

    def test_cancel_by_owner(self):
        row = self._create()
        cancelled = cancel_request(self.db, row.id, "c1")
        self.assertEqual(cancelled.status, "cancelled")

    def test_cancel_of_non_pending_request_fails(self):
        row = self._create()
        accept_request(self.db, row.id)
        with self.assertRaises(RequestNotFound) as ctx:
            cancel_request(self.db, row.id, "c1")
        self.assertEqual(ctx.exception.detail, CANCEL_FAILED_DETAIL)

    def test_cancel_of_unknown_id_uses_same_message(self):
        with self.assertRaises(RequestNotFound) as ctx:
            cancel_request(self.db, "not-a-uuid", "c1")
        self.assertEqual(ctx.exception.detail, CANCEL_FAILED_DETAIL)

    def test_terminal_status_is_sticky(self):
        row = self._create()
        reject_request(self.db, row.id)
        with self.assertRaises(RequestConflict):
            accept_request(self.db, row.id)
        self.assertEqual(self.db.get(ClientRequest, row.id).status, "rejected")

    def test_second_accept_conflicts(self):
        row = self._create()
        accept_request(self.db, row.id)
        with self.assertRaises(RequestConflict) as ctx:
            accept_request(self.db, row.id)
        self.assertIn("accepted", ctx.exception.detail)

    def test_accept_by_other_lawyer_is_forbidden(self):
        row = self._create()
        with self.assertRaises(RequestForbidden):
            accept_request(self.db, row.id, lawyer_id="u-99")
        self.assertEqual(self.db.get(ClientRequest, row.id).status, "pending")

    def test_accept_of_missing_request(self):
        with self.assertRaises(RequestNotFound):
            accept_request(self.db, "00000000-0000-0000-0000-000000000000")

    def test_update_content_keeps_status(self):
        row = self._create()
        updated = update_request(
            self.db,
            row.id,
            {"title": "  New title ", "urgency": "high", "lawyer_id": "profile-42", "status": "accepted"},
        )
        self.assertEqual(updated.title, "New title")
        self.assertEqual(updated.urgency, "high")
        self.assertEqual(updated.lawyer_id, "u-99")
        self.assertEqual(updated.status, "pending")

    def test_update_rejects_empty_title(self):
        row = self._create()
        with self.assertRaises(RequestValidationFailed):
            update_request(self.db, row.id, {"title": "  "})

    def test_update_without_fields_returns_row_unchanged(self):
        row = self._create(urgency="urgent")
        before = (row.title, row.urgency, row.status, row.updated_at)

        unchanged = update_request(self.db, row.id, {})
        self.assertEqual((unchanged.title, unchanged.urgency, unchanged.status, unchanged.updated_at), before)

        ignored = update_request(self.db, row.id, {"status": "accepted", "client_id": "c2"})
        self.assertEqual(ignored.updated_at, before[3])
        self.assertEqual(ignored.client_id, "c1")

    def test_update_rejects_explicit_nulls(self):
        row = self._create(urgency="urgent", request_type="new_case")
        for field in ("urgency", "request_type", "lawyer_id", "title"):
            with self.assertRaises(RequestValidationFailed):
                update_request(self.db, row.id, {field: None})
        with self.assertRaises(RequestValidationFailed):
            update_request(self.db, row.id, {"lawyer_id": "  "})

        current = self.db.get(ClientRequest, row.id)
        self.assertEqual(current.urgency, "urgent")
        self.assertEqual(current.request_type, "new_case")
        self.assertEqual(current.lawyer_id, "u-lawyer-1")

    def test_nullable_content_can_be_cleared(self):
        row = self._create(description="Deposit kept", case_category="housing")
        updated = update_request(self.db, row.id, {"description": None, "case_category": None})
        self.assertIsNone(updated.description)
        self.assertIsNone(updated.case_category)

    def test_lawyer_cannot_change_after_decision(self):
        row = self._create()
        accept_request(self.db, row.id, lawyer_id="u-lawyer-1")
        with self.assertRaises(RequestConflict):
            update_request(self.db, row.id, {"lawyer_id": "u-99"})
        current = self.db.get(ClientRequest, row.id)
        self.assertEqual(current.lawyer_id, "u-lawyer-1")
        self.assertEqual(current.status, "accepted")

    def test_content_of_decided_request_can_still_change(self):
        row = self._create()
        reject_request(self.db, row.id)
        updated = update_request(self.db, row.id, {"description": "Closing notes"})
        self.assertEqual(updated.description, "Closing notes")
        self.assertEqual(updated.status, "rejected")

    def test_update_of_missing_request(self):
        with self.assertRaises(RequestNotFound):
            update_request(self.db, "00000000-0000-0000-0000-000000000000", {"lawyer_id": "u-99"})

    def test_delete_request(self):
        row = self._create()
        delete_request(self.db, row.id)
        self.assertEqual(self._request_count(), 0)
        with self.assertRaises(RequestNotFound):
            delete_request(self.db, row.id)


class StatusFlowTests(unittest.TestCase):
    def test_only_pending_has_outgoing_transitions(self):
        self.assertTrue(transition_allowed("pending", "accepted"))
        self.assertTrue(transition_allowed("pending", "cancelled"))
        for terminal in ("accepted", "rejected", "cancelled"):
            for target in ("pending", "accepted", "rejected", "cancelled"):
                self.assertFalse(transition_allowed(terminal, target))

    def test_source_statuses(self):
        self.assertEqual(set(source_statuses_for("accepted")), {"pending"})
        self.assertEqual(set(source_statuses_for("pending")), set())

    def test_terminal_statuses(self):
        self.assertFalse(is_terminal("pending"))
        for status in ("accepted", "REJECTED", " cancelled "):
            self.assertTrue(is_terminal(status))
