from .storefront import storefront_bp
from .webhooks import webhooks_bp
from .admin import admin_bp
from .driver import driver_bp


__all__ = [
    'storefront_bp',
    'webhooks_bp',
    'admin_bp',
    'driver_bp',
]
