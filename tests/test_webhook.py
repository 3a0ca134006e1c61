import json
from datetime import datetime

from conftest import stripe_signature, subscription_event
from models import db
from models.subscription import Subscription


def _rows():
    return Subscription.query.all()


# -------------------- Signature --------------------

def test_wrong_secret_is_rejected(post_webhook, app):
    resp = post_webhook(subscription_event(), secret='whsec_someone_else')
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'Webhook signature verification failed'
    assert _rows() == []


def test_missing_signature_header(client, app):
    resp = client.post('/api/stripe/webhook', data=json.dumps(subscription_event()),
                       content_type='application/json')
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'Missing stripe-signature header'
    assert _rows() == []


def test_tampered_body_is_rejected(client, app):
    signed = json.dumps(subscription_event(status='canceled'))
    tampered = json.dumps(subscription_event(status='active'))
    resp = client.post(
        '/api/stripe/webhook',
        data=tampered,
        content_type='application/json',
        headers={'Stripe-Signature': stripe_signature(signed)},
    )
    assert resp.status_code == 400
    assert _rows() == []


def test_stale_timestamp_is_rejected(client, app):
    payload = json.dumps(subscription_event())
    resp = client.post(
        '/api/stripe/webhook',
        data=payload,
        content_type='application/json',
        headers={'Stripe-Signature': stripe_signature(payload, timestamp=1000)},
    )
    assert resp.status_code == 400
    assert _rows() == []


def test_missing_secret_is_a_server_error(post_webhook, app, monkeypatch):
    monkeypatch.setitem(app.config, 'STRIPE_WEBHOOK_SECRET', '')
    resp = post_webhook(subscription_event())
    assert resp.status_code == 500
    assert _rows() == []


# -------------------- Subscription changes --------------------

def test_subscription_updated_creates_row(post_webhook, app):
    resp = post_webhook(subscription_event())
    assert resp.status_code == 200
    assert resp.get_json() == {'received': True}
    row = Subscription.query.one()
    assert row.stripe_subscription_id == 'sub_123'
    assert row.stripe_customer_id == 'cus_1'
    assert row.contact == 'ann@example.com'
    assert row.plan == 'FREE_DELIVERY'
    assert row.status == 'active'
    assert row.current_period_end.replace(tzinfo=None) == datetime(2026, 1, 1)


def test_redelivery_is_idempotent(post_webhook, app):
    event = subscription_event()
    assert post_webhook(event).status_code == 200
    assert post_webhook(event).status_code == 200
    rows = _rows()
    assert len(rows) == 1
    assert rows[0].status == 'active'


def test_later_event_replaces_row(post_webhook, app):
    post_webhook(subscription_event(status='active'))
    post_webhook(subscription_event(status='past_due', period_end=1769904000, event_id='evt_2'))
    row = Subscription.query.one()
    assert row.status == 'past_due'
    assert row.current_period_end.replace(tzinfo=None) == datetime(2026, 2, 1)


def test_last_arrival_wins_in_either_order(post_webhook, app):
    for first, last in (('active', 'past_due'), ('past_due', 'active')):
        sub_id = f'sub_{first}_{last}'
        post_webhook(subscription_event(sub_id=sub_id, status=first, event_id='evt_a'))
        post_webhook(subscription_event(sub_id=sub_id, status=last, event_id='evt_b'))
        rows = Subscription.query.filter_by(stripe_subscription_id=sub_id).all()
        assert len(rows) == 1
        assert rows[0].status == last


def test_unsupported_dialect_fails_loudly(post_webhook, app, monkeypatch):
    monkeypatch.setattr(db.engine.dialect, 'name', 'mysql')
    resp = post_webhook(subscription_event())
    assert resp.status_code == 500
    assert 'not supported on mysql' in resp.get_json()['details']
    monkeypatch.undo()
    assert _rows() == []


def test_deleted_forces_canceled(post_webhook, app):
    post_webhook(subscription_event())
    resp = post_webhook(subscription_event(
        event_type='customer.subscription.deleted', status='active', event_id='evt_2'))
    assert resp.status_code == 200
    assert Subscription.query.one().status == 'canceled'


def test_plan_defaults_when_metadata_has_none(post_webhook, app):
    event = subscription_event(plan='')
    assert post_webhook(event).status_code == 200
    assert Subscription.query.one().plan == 'FREE_DELIVERY'


def test_missing_contact_is_skipped(post_webhook, app):
    resp = post_webhook(subscription_event(contact=None))
    assert resp.status_code == 200
    assert _rows() == []


def test_expanded_customer_object(post_webhook, app):
    event = subscription_event()
    event['data']['object']['customer'] = {'id': 'cus_expanded', 'object': 'customer'}
    assert post_webhook(event).status_code == 200
    assert Subscription.query.one().stripe_customer_id == 'cus_expanded'


def test_unhandled_event_type_is_acknowledged(post_webhook, app):
    resp = post_webhook({'id': 'evt_9', 'type': 'invoice.paid', 'data': {'object': {'id': 'in_1'}}})
    assert resp.status_code == 200
    assert resp.get_json() == {'received': True}
    assert _rows() == []


def test_alias_path(post_webhook, app):
    resp = post_webhook(subscription_event(), path='/api/webhook')
    assert resp.status_code == 200
    assert len(_rows()) == 1


def test_store_failure_returns_500(post_webhook, app, monkeypatch):
    import app.services.subscriptions as subscriptions

    def boom(**kwargs):
        raise RuntimeError('store unavailable')

    monkeypatch.setattr(subscriptions, 'upsert_subscription', boom)
    resp = post_webhook(subscription_event())
    assert resp.status_code == 500
    data = resp.get_json()
    assert data['error'] == 'Webhook handler failed'
    assert 'store unavailable' in data['details']


# -------------------- Checkout completed --------------------

def _checkout_event(subscription='sub_777', customer='cus_9', contact='4155550123'):
    metadata = {'plan': 'FREE_DELIVERY'}
    if contact is not None:
        metadata['contact'] = contact
    return {
        'id': 'evt_checkout',
        'type': 'checkout.session.completed',
        'data': {'object': {
            'id': 'cs_test_1',
            'object': 'checkout.session',
            'mode': 'subscription',
            'subscription': subscription,
            'customer': customer,
            'metadata': metadata,
        }},
    }


def test_checkout_completed_fetches_subscription(post_webhook, app, monkeypatch):
    import app.services.billing as billing
    fetched = []

    def fake_retrieve(subscription_id):
        fetched.append(subscription_id)
        return {
            'id': subscription_id,
            'status': 'active',
            'customer': 'cus_9',
            'metadata': {'plan': 'FREE_DELIVERY', 'contact': '4155550123'},
            'items': {'data': [{'id': 'si_1', 'current_period_end': 1767225600}]},
        }

    monkeypatch.setattr(billing, 'retrieve_subscription', fake_retrieve)
    resp = post_webhook(_checkout_event())
    assert resp.status_code == 200
    assert fetched == ['sub_777']
    row = Subscription.query.one()
    assert row.contact == '4155550123'
    assert row.status == 'active'
    assert row.stripe_customer_id == 'cus_9'
    assert row.current_period_end.replace(tzinfo=None) == datetime(2026, 1, 1)


def test_checkout_without_subscription_is_skipped(post_webhook, app, monkeypatch):
    import app.services.billing as billing

    def fail(subscription_id):
        raise AssertionError('should not fetch')

    monkeypatch.setattr(billing, 'retrieve_subscription', fail)
    assert post_webhook(_checkout_event(subscription=None)).status_code == 200
    assert post_webhook(_checkout_event(contact=None)).status_code == 200
    assert _rows() == []


def test_checkout_provider_failure_returns_500(post_webhook, app, monkeypatch):
    import app.services.billing as billing

    def fail(subscription_id):
        raise billing.BillingProviderError('No such subscription')

    monkeypatch.setattr(billing, 'retrieve_subscription', fail)
    resp = post_webhook(_checkout_event())
    assert resp.status_code == 500
    assert _rows() == []

