"""
Defaults of the environment-driven settings.
"""

import importlib

from sqlalchemy.engine import make_url

from app.utils import settings


class TestSettings:

    def test_default_database_url_names_psycopg2_driver(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)

        reloaded = importlib.reload(settings)

        assert make_url(reloaded.DATABASE_URL).drivername == "postgresql+psycopg2"
