"""Celery wiring: app configuration and eager task execution."""

from __future__ import annotations

import pytest

pytestmark = pytest.mark.integration


class TestCeleryConfig:
    def test_app_is_exported_from_config(self):
        from config import celery_app
        from config.celery import app

        assert celery_app is app
        assert app.main == "kitchencloud"

    def test_serialization_is_json(self, settings):
        assert settings.CELERY_TASK_SERIALIZER == "json"
        assert settings.CELERY_RESULT_SERIALIZER == "json"
        assert settings.CELERY_ACCEPT_CONTENT == ["json"]

    def test_timezone_matches_django(self, settings):
        assert settings.CELERY_TIMEZONE == settings.TIME_ZONE

    def test_outbox_publisher_is_scheduled(self, settings):
        tasks = {entry["task"] for entry in settings.CELERY_BEAT_SCHEDULE.values()}
        assert "core.publish_outbox_events" in tasks

    def test_publisher_is_registered(self):
        from config.celery import app

        app.loader.import_default_modules()
        assert "core.publish_outbox_events" in app.tasks


class TestEagerExecution:
    def test_publish_task_runs_in_process(self):
        from modules.core.tasks import publish_outbox_events

        result = publish_outbox_events.delay()

        assert result.successful()
        assert result.result == {"published": 0, "failed": 0}
