import os


def get_settings_module() -> str:
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "hr_backoffice.config.production"

    if env in {"test", "testing"}:
        return "hr_backoffice.config.testing"

    return "hr_backoffice.config.development"
