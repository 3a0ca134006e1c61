from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
import stripe

from app.services.subscriptions import lookup_membership, upsert_subscription
from models import db


def _subscribe(contact='ann@example.com', sub_id='sub_1', status='active', plan='FREE_DELIVERY', period_end=None):
    upsert_subscription(
        stripe_customer_id='cus_1',
        stripe_subscription_id=sub_id,
        status=status,
        plan=plan,
        contact=contact,
        current_period_end=period_end,
    )
    db.session.commit()


# -------------------- Lookup --------------------

def test_unknown_contact_is_not_a_member(client, app):
    resp = client.get('/api/membership', query_string={'contact': 'nobody@example.com'})
    assert resp.status_code == 200
    assert resp.get_json() == {'isMember': False, 'status': 'inactive', 'current_period_end': None}


def test_empty_contact_is_not_a_member(client, app):
    for params in ({}, {'contact': '   '}):
        resp = client.get('/api/membership', query_string=params)
        assert resp.status_code == 200
        assert resp.get_json()['isMember'] is False
        assert resp.get_json()['status'] == 'inactive'


def test_active_subscriber_is_member(client, app):
    _subscribe(period_end=datetime(2026, 11, 1, tzinfo=timezone.utc))
    resp = client.get('/api/membership', query_string={'contact': ' ann@example.com '})
    data = resp.get_json()
    assert data['isMember'] is True
    assert data['status'] == 'active'
    assert data['current_period_end'].startswith('2026-11-01T00:00:00')


@pytest.mark.parametrize('status', ['past_due', 'canceled', 'incomplete', 'trialing'])
def test_other_statuses_are_not_members(app, status):
    _subscribe(status=status)
    membership = lookup_membership('ann@example.com')
    assert membership.is_member is False
    assert membership.status == status


def test_latest_subscription_wins(app):
    _subscribe(sub_id='sub_old', status='canceled')
    _subscribe(sub_id='sub_new', status='active')
    assert lookup_membership('ann@example.com').is_member is True


def test_other_plan_does_not_count(app):
    _subscribe(plan='SOMETHING_ELSE')
    assert lookup_membership('ann@example.com').is_member is False
    assert lookup_membership('ann@example.com', plan='SOMETHING_ELSE').is_member is True


# -------------------- Checkout --------------------

@pytest.fixture
def stripe_settings(app, monkeypatch):
    monkeypatch.setitem(app.config, 'STRIPE_SECRET_KEY', 'sk_test_123')
    monkeypatch.setitem(app.config, 'STRIPE_PRICE_FREE_DELIVERY', 'price_123')
    monkeypatch.setitem(app.config, 'PUBLIC_BASE_URL', 'https://shop.example.com/')


def test_checkout_returns_hosted_url(client, stripe_settings, monkeypatch):
    calls = []

    def fake_create(**kwargs):
        calls.append(kwargs)
        return SimpleNamespace(id='cs_test_1', url='https://checkout.stripe.com/c/pay/cs_test_1')

    monkeypatch.setattr(stripe.checkout.Session, 'create', fake_create)
    resp = client.post('/api/checkout', json={'contact': ' ann@example.com '})
    assert resp.status_code == 200
    assert resp.get_json() == {'url': 'https://checkout.stripe.com/c/pay/cs_test_1'}

    assert len(calls) == 1
    kwargs = calls[0]
    assert kwargs['api_key'] == 'sk_test_123'
    assert kwargs['mode'] == 'subscription'
    assert kwargs['line_items'] == [{'price': 'price_123', 'quantity': 1}]
    assert kwargs['success_url'] == 'https://shop.example.com/subscribe?success=1'
    assert kwargs['cancel_url'] == 'https://shop.example.com/subscribe?canceled=1'
    assert kwargs['metadata'] == {'contact': 'ann@example.com', 'plan': 'FREE_DELIVERY'}
    assert kwargs['subscription_data'] == {'metadata': {'contact': 'ann@example.com', 'plan': 'FREE_DELIVERY'}}


def test_checkout_requires_contact(client, stripe_settings, monkeypatch):
    def fail(**kwargs):
        raise AssertionError('provider should not be called')

    monkeypatch.setattr(stripe.checkout.Session, 'create', fail)
    for body in ({}, {'contact': ''}, {'contact': '   '}):
        resp = client.post('/api/checkout', json=body)
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'Contact is required (email or phone).'


def test_checkout_without_price_is_a_server_error(client, stripe_settings, app, monkeypatch):
    monkeypatch.setitem(app.config, 'STRIPE_PRICE_FREE_DELIVERY', '')
    resp = client.post('/api/checkout', json={'contact': 'ann@example.com'})
    assert resp.status_code == 500
    assert 'STRIPE_PRICE_FREE_DELIVERY' in resp.get_json()['error']


def test_checkout_provider_error_is_surfaced(client, stripe_settings, monkeypatch):
    def reject(**kwargs):
        raise stripe.InvalidRequestError('No such price: price_123', 'line_items')

    monkeypatch.setattr(stripe.checkout.Session, 'create', reject)
    resp = client.post('/api/checkout', json={'contact': 'ann@example.com'})
    assert resp.status_code == 500
    data = resp.get_json()
    assert 'No such price' in data['error']
    assert data['type'] == 'InvalidRequestError'
