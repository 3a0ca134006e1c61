import hashlib
import hmac
import json
import os
import sys
import time

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
os.environ.setdefault('APP_ENV', 'testing')
os.environ.setdefault('CELERY_TASK_ALWAYS_EAGER', '1')

import extensions  # noqa: E402
from models import db  # noqa: E402

WEBHOOK_SECRET = 'whsec_test_secret'
ADMIN_KEY = 'test-admin-key'
DRIVER_KEY = 'test-driver-key'


@pytest.fixture(scope='session')
def app_instance():
    os.environ['APP_ENV'] = 'testing'
    from app import create_app
    app = create_app()
    app.config.update(
        TESTING=True,
        SQLALCHEMY_DATABASE_URI='sqlite:///:memory:',
        SQLALCHEMY_TRACK_MODIFICATIONS=False,
        STRIPE_WEBHOOK_SECRET=WEBHOOK_SECRET,
        ADMIN_API_KEY=ADMIN_KEY,
        DRIVER_API_KEY=DRIVER_KEY,
        FREE_DELIVERY_MIN_CENTS=1000,
        NON_MEMBER_DELIVERY_FEE_CENTS=399,
        DELIVERY_FEE_POLICY='client',
    )
    return app


@pytest.fixture(scope='function')
def app(app_instance):
    with app_instance.app_context():
        db.drop_all()
        db.create_all()
        extensions.limiter.reset()
        yield app_instance
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    return app.test_client()


def stripe_signature(payload: str, secret: str = WEBHOOK_SECRET, timestamp: int = None) -> str:
    """Build a Stripe-Signature header the way Stripe signs deliveries."""
    timestamp = int(time.time()) if timestamp is None else timestamp
    digest = hmac.new(secret.encode(), f"{timestamp}.{payload}".encode(), hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


@pytest.fixture
def post_webhook(client):
    def _post(event, secret=WEBHOOK_SECRET, path='/api/stripe/webhook'):
        payload = json.dumps(event)
        return client.post(
            path,
            data=payload,
            content_type='application/json',
            headers={'Stripe-Signature': stripe_signature(payload, secret)},
        )
    return _post


def subscription_event(event_type='customer.subscription.updated', sub_id='sub_123', status='active',
                       contact='ann@example.com', customer='cus_1', plan='FREE_DELIVERY',
                       period_end=1767225600, event_id='evt_1'):
    metadata = {'plan': plan}
    if contact is not None:
        metadata['contact'] = contact
    return {
        'id': event_id,
        'object': 'event',
        'type': event_type,
        'data': {
            'object': {
                'id': sub_id,
                'object': 'subscription',
                'customer': customer,
                'status': status,
                'current_period_end': period_end,
                'metadata': metadata,
            }
        },
    }


def order_payload(**overrides):
    body = {
        'customer_name': 'Ann',
        'phone': '3235550100',
        'unit': '4B',
        'notes': '',
        'delivery_fee_cents': 399,
        'items': [
            {'product_id': 'p1', 'name': 'Cold Brew Coffee', 'qty': 3, 'price_cents': 500},
        ],
    }
    body.update(overrides)
    return body
