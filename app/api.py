from app.routes import (
    storefront_bp,
    webhooks_bp,
    admin_bp,
    driver_bp,
)


def register_api(app):
    """Register blueprint routes under the API prefix."""
    app.register_blueprint(storefront_bp)
    app.register_blueprint(webhooks_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(driver_bp)
    # Stripe retries failed deliveries itself; throttling them only delays state
    app.limiter.exempt(webhooks_bp)
