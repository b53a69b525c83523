"""Concurrent checkouts against the same and against different listings.

Each thread gets its own session, as each request would in the API.
"""

import threading

from ecofinds.domain.errors import ProductUnavailableError
from ecofinds.domain.status import ProductStatus
from ecofinds.services.order_service import OrderService
from helpers import FakeNotifier, add_to_cart, cart_count, order_count, product_status


def _checkout_in_parallel(session_factory, buyer_ids):
    barrier = threading.Barrier(len(buyer_ids))
    results = {}

    def run(buyer_id):
        session = session_factory()
        try:
            svc = OrderService(session, notifier=FakeNotifier())
            barrier.wait(timeout=10)
            results[buyer_id] = svc.checkout(buyer_id)
        except Exception as e:
            results[buyer_id] = e
        finally:
            session.close()

    threads = [threading.Thread(target=run, args=(b,)) for b in buyer_ids]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)

    assert not any(t.is_alive() for t in threads)
    return results


class TestConcurrentCheckout:
    def test_last_unit_is_sold_once(self, db, session_factory, market):
        add_to_cart(db, market.buyer_id, market.product_a)
        add_to_cart(db, market.other_buyer_id, market.product_a)

        results = _checkout_in_parallel(session_factory, [market.buyer_id, market.other_buyer_id])

        orders = {b: r for b, r in results.items() if isinstance(r, dict)}
        failures = {b: r for b, r in results.items() if isinstance(r, ProductUnavailableError)}
        assert len(orders) == 1, results
        assert len(failures) == 1, results

        (winner,) = orders
        (loser,) = failures
        assert failures[loser].product_id == market.product_a
        assert order_count(db) == 1
        assert cart_count(db, winner) == 0
        assert cart_count(db, loser) == 1
        assert product_status(db, market.product_a) == ProductStatus.RESERVED.value

    def test_disjoint_carts_both_succeed(self, db, session_factory, market):
        add_to_cart(db, market.buyer_id, market.product_a)
        add_to_cart(db, market.other_buyer_id, market.product_b)

        results = _checkout_in_parallel(session_factory, [market.buyer_id, market.other_buyer_id])

        assert all(isinstance(r, dict) for r in results.values()), results
        assert order_count(db) == 2
        assert results[market.buyer_id]["subtotal"] != results[market.other_buyer_id]["subtotal"]
