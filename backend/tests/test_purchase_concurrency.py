"""
Concurrent purchase tests.

Runs against a temporary SQLite file (not the shared in-memory database) so
every worker thread gets its own connection and really contends for the
write lock.
"""

import os
import tempfile
import threading
import unittest

from market import create_app
from market.extensions import db
from market.models import Item, Transaction, User
from market.services import transaction_service
from market.validation import ConflictError

BUYERS = 8


class PurchaseConcurrencyTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        db_path = os.path.join(self.tmpdir.name, "concurrency.db")
        self.app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}",
        })

        with self.app.app_context():
            db.drop_all()
            db.create_all()

            seller = User(username="seller")
            buyers = [User(username=f"buyer_{i}") for i in range(BUYERS)]
            db.session.add(seller)
            db.session.add_all(buyers)
            db.session.commit()
            self.buyer_ids = [b.id for b in buyers]

            item = Item(seller_id=seller.id, title="Last ticket", price=100000)
            db.session.add(item)
            db.session.commit()
            self.item_id = item.id

    def tearDown(self):
        with self.app.app_context():
            db.session.remove()
            db.drop_all()
            db.session.remove()
            db.engine.dispose()
        self.tmpdir.cleanup()

    def test_exactly_one_buyer_wins(self):
        sold = []
        conflicts = []
        errors = []
        lock = threading.Lock()
        start = threading.Barrier(BUYERS)

        def worker(buyer_id):
            with self.app.app_context():
                try:
                    start.wait()
                    transaction = transaction_service.create_transaction(
                        item_id=self.item_id, buyer_id=buyer_id, final_price=100000,
                    )
                    with lock:
                        sold.append(transaction.buyer_id)
                except ConflictError as exc:
                    with lock:
                        conflicts.append(str(exc))
                except Exception as exc:
                    with lock:
                        errors.append(exc)
                finally:
                    db.session.remove()

        threads = [threading.Thread(target=worker, args=(b,)) for b in self.buyer_ids]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(errors, [])
        self.assertEqual(len(sold), 1)
        self.assertEqual(conflicts, ["Item is not available for purchase"] * (BUYERS - 1))

        with self.app.app_context():
            self.assertEqual(db.session.query(Transaction).filter_by(item_id=self.item_id).count(), 1)
            item = db.session.get(Item, self.item_id)
            self.assertEqual(item.status, "SOLD")
            winner = db.session.query(Transaction).filter_by(item_id=self.item_id).one()
            self.assertEqual(winner.buyer_id, sold[0])


if __name__ == "__main__":
    unittest.main()
