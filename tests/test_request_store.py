import os
import unittest
import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import create_engine, delete
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")

from app.core.config import settings
from app.models.client_request import ClientRequest
from app.models.user import User
from app.services.request_errors import RequestNotFound, RequestValidationFailed
from app.services.request_store import ClientRequestStore, clamp_page, coerce_request_id


class ClientRequestStoreTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.engine = create_engine(
            "sqlite+pysqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        cls.SessionLocal = sessionmaker(bind=cls.engine, autocommit=False, autoflush=False)
        User.__table__.create(bind=cls.engine)
        ClientRequest.__table__.create(bind=cls.engine)

    @classmethod
    def tearDownClass(cls):
        ClientRequest.__table__.drop(bind=cls.engine)
        User.__table__.drop(bind=cls.engine)
        cls.engine.dispose()

    def setUp(self):
        with self.SessionLocal() as db:
            db.execute(delete(ClientRequest))
            db.execute(delete(User))
            db.add_all(
                [
                    User(id="c1", role="client", first_name="Chloe", last_name="Roux", email="chloe@example.com", phone="+33100"),
                    User(id="c2", role="client", first_name="Paul", last_name="Blanc", email="paul@example.com"),
                    User(id="u-lawyer-1", role="lawyer", first_name="Anna", last_name="Petit", email="anna@example.com"),
                ]
            )
            db.commit()
        self.db = self.SessionLocal()
        self.store = ClientRequestStore(self.db)

    def tearDown(self):
        self.db.close()

    def _seed(self, *, client_id="c1", lawyer_id="u-lawyer-1", status="pending", title="Lease dispute", minutes_ago=0):
        row = ClientRequest(
            id=uuid.uuid4(),
            client_id=client_id,
            lawyer_id=lawyer_id,
            title=title,
            status=status,
            created_at=datetime.now(timezone.utc) - timedelta(minutes=minutes_ago),
        )
        self.db.add(row)
        self.db.commit()
        return row.id

    def test_insert_forces_pending_and_defaults(self):
        row = self.store.insert({"client_id": "c1", "lawyer_id": "u-lawyer-1", "title": "Divorce"})
        self.assertEqual(row.status, "pending")
        self.assertEqual(row.request_type, "consultation")
        self.assertEqual(row.urgency, "medium")
        self.assertIsNotNone(row.created_at)

    def test_client_listing_is_newest_first_with_identity(self):
        older = self._seed(title="Older", minutes_ago=10)
        newer = self._seed(title="Newer", minutes_ago=1)
        self._seed(client_id="c2", title="Other client")

        rows, total = self.store.list_for_client("c1")
        self.assertEqual(total, 2)
        self.assertEqual([row["id"] for row in rows], [str(newer), str(older)])
        self.assertEqual(rows[0]["lawyer_name"], "Anna Petit")
        self.assertEqual(rows[0]["lawyer_email"], "anna@example.com")

    def test_total_ignores_pagination(self):
        for index in range(5):
            self._seed(title=f"Request {index}", minutes_ago=index)
        rows, total = self.store.list_for_client("c1", limit=2, offset=2)
        self.assertEqual(len(rows), 2)
        self.assertEqual(total, 5)
        self.assertEqual([row["title"] for row in rows], ["Request 2", "Request 3"])

    def test_status_filter_applies_to_rows_and_total(self):
        self._seed(status="pending")
        self._seed(status="accepted")
        self._seed(status="accepted")
        rows, total = self.store.list_for_client("c1", status="accepted")
        self.assertEqual(total, 2)
        self.assertTrue(all(row["status"] == "accepted" for row in rows))
        self.assertEqual(self.store.count_for_client("c1", status="accepted"), 2)
        self.assertEqual(self.store.count_for_client("c1"), 3)

    def test_unknown_status_filter_is_rejected(self):
        with self.assertRaises(RequestValidationFailed):
            self.store.list_for_client("c1", status="archived")

    def test_lawyer_listing_hides_requests_from_missing_clients(self):
        self._seed(client_id="c1", title="Known client")
        self._seed(client_id="ghost", title="Deleted client")

        rows, total = self.store.list_for_lawyer("u-lawyer-1")
        self.assertEqual(total, 1)
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["client_name"], "Chloe Roux")
        self.assertEqual(rows[0]["client_phone"], "+33100")
        self.assertEqual(self.store.count_for_lawyer("u-lawyer-1"), 1)

    def test_lawyer_pending_count_defaults_to_pending(self):
        self._seed(status="pending")
        self._seed(status="pending")
        self._seed(status="rejected")
        self.assertEqual(self.store.count_for_lawyer("u-lawyer-1"), 2)
        self.assertEqual(self.store.count_for_lawyer("u-lawyer-1", status=None), 3)

    def test_lawyer_count_matches_unpaged_listing_for_each_status(self):
        self._seed(status="pending")
        self._seed(status="pending", client_id="c2")
        self._seed(status="accepted")
        self._seed(status="rejected", client_id="c2")
        self._seed(status="pending", client_id="ghost")
        self._seed(status="pending", lawyer_id="u-other")

        for status in (None, "pending", "accepted", "rejected", "cancelled"):
            rows, total = self.store.list_for_lawyer(
                "u-lawyer-1", status=status, limit=settings.REQUEST_PAGE_LIMIT_MAX
            )
            self.assertEqual(self.store.count_for_lawyer("u-lawyer-1", status=status), len(rows))
            self.assertEqual(total, len(rows))

    def test_client_count_matches_unpaged_listing_for_each_status(self):
        self._seed(status="pending")
        self._seed(status="cancelled")
        self._seed(status="accepted", client_id="c2")

        for status in (None, "pending", "accepted", "cancelled"):
            rows, _ = self.store.list_for_client("c1", status=status, limit=settings.REQUEST_PAGE_LIMIT_MAX)
            self.assertEqual(self.store.count_for_client("c1", status=status), len(rows))

    def test_update_fields_honours_status_guard(self):
        request_id = self._seed(status="accepted")
        self.assertIsNone(self.store.update_fields(request_id, {"lawyer_id": "u-other"}, only_statuses=("pending",)))
        self.assertEqual(self.store.get(request_id).lawyer_id, "u-lawyer-1")

    def test_transition_is_conditional_on_source_status(self):
        request_id = self._seed(status="pending")
        self.assertEqual(self.store.transition(request_id, "accepted"), 1)
        self.assertEqual(self.store.transition(request_id, "rejected"), 0)
        self.assertEqual(self.store.get(request_id).status, "accepted")

    def test_transition_guards_owner_columns(self):
        request_id = self._seed(status="pending")
        self.assertEqual(self.store.transition(request_id, "cancelled", client_id="c2"), 0)
        self.assertEqual(self.store.transition(request_id, "accepted", lawyer_id="u-other"), 0)
        self.assertEqual(self.store.transition(request_id, "cancelled", client_id="c1"), 1)

    def test_update_fields_applies_allow_list_only(self):
        request_id = self._seed()
        row = self.store.update_fields(request_id, {"title": "Updated", "status": "accepted", "client_id": "c2"})
        self.assertEqual(row.title, "Updated")
        self.assertEqual(row.status, "pending")
        self.assertEqual(row.client_id, "c1")

    def test_update_fields_on_missing_row_returns_none(self):
        self.assertIsNone(self.store.update_fields(uuid.uuid4(), {"title": "x"}))

    def test_get_detail_and_delete(self):
        request_id = self._seed()
        detail = self.store.get_detail(request_id)
        self.assertEqual(detail["client_email"], "chloe@example.com")
        self.assertEqual(detail["lawyer_name"], "Anna Petit")
        self.assertTrue(self.store.delete(request_id))
        self.assertFalse(self.store.delete(request_id))
        self.assertIsNone(self.store.get_detail(request_id))

    def test_unparsable_id_is_not_found(self):
        with self.assertRaises(RequestNotFound):
            coerce_request_id("not-a-uuid")


class PageClampTests(unittest.TestCase):
    def test_limits_are_clamped(self):
        self.assertEqual(clamp_page(None, None), (settings.REQUEST_PAGE_LIMIT_DEFAULT, 0))
        self.assertEqual(clamp_page(0, -5), (1, 0))
        self.assertEqual(clamp_page(10_000, 3), (settings.REQUEST_PAGE_LIMIT_MAX, 3))
