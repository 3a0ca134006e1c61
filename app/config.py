import os

class BaseConfig:
    JSON_SORT_KEYS = False
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ALLOWED_ORIGINS = os.getenv("CORS_ALLOWED_ORIGINS", "*")
    RATELIMIT_STORAGE_URL = os.getenv("RATELIMIT_STORAGE_URL", "memory://")
    ORDER_LIMIT_PER_IP = os.getenv("ORDER_LIMIT_PER_IP", "20 per hour")
    QUOTE_LIMIT_PER_IP = os.getenv("QUOTE_LIMIT_PER_IP", "120 per hour")

    # Pricing (integer cents)
    FREE_DELIVERY_MIN_CENTS = int(os.getenv("FREE_DELIVERY_MIN_CENTS", 2500))
    NON_MEMBER_DELIVERY_FEE_CENTS = int(os.getenv("NON_MEMBER_DELIVERY_FEE_CENTS", 399))
    # "client": trust a non-negative submitted fee; "server": re-derive from membership
    DELIVERY_FEE_POLICY = os.getenv("DELIVERY_FEE_POLICY", "client").lower()

    # Billing
    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
    STRIPE_PRICE_FREE_DELIVERY = os.getenv("STRIPE_PRICE_FREE_DELIVERY")
    STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
    MEMBERSHIP_PLAN = os.getenv("MEMBERSHIP_PLAN", "FREE_DELIVERY")
    PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:3000")

    # Staff surfaces
    ADMIN_API_KEY = os.getenv("ADMIN_API_KEY")
    DRIVER_API_KEY = os.getenv("DRIVER_API_KEY")

    OTEL_SERVICE_NAME = os.getenv("OTEL_SERVICE_NAME", "storefront-backend")
    OTEL_EXPORTER_OTLP_ENDPOINT = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4318/v1/traces")

class DevelopmentConfig(BaseConfig):
    DEBUG = True
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-insecure-key")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///dev.db")

class TestingConfig(BaseConfig):
    TESTING = True
    SECRET_KEY = "test-key"
    ORDER_LIMIT_PER_IP = os.getenv("ORDER_LIMIT_PER_IP", "1000 per hour")
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET", "whsec_test_secret")
    ADMIN_API_KEY = os.getenv("ADMIN_API_KEY", "test-admin-key")
    DRIVER_API_KEY = os.getenv("DRIVER_API_KEY", "test-driver-key")

class ProductionConfig(BaseConfig):
    DEBUG = False
    TESTING = False
    SECRET_KEY = os.getenv("SECRET_KEY")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL")

    @staticmethod
    def validate():
        missing = []
        if not os.getenv("SECRET_KEY"):
            missing.append("SECRET_KEY")
        if not os.getenv("DATABASE_URL"):
            missing.append("DATABASE_URL")
        if missing:
            raise RuntimeError(
                f"Missing required env vars in production: {', '.join(missing)}"
            )

def get_config_class():
    env = os.getenv("APP_ENV", "development").lower()
    if env == "production":
        ProductionConfig.validate()
        return ProductionConfig
    if env == "testing":
        return TestingConfig
    return DevelopmentConfig
