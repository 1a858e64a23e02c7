"""Tests for environment-driven configuration."""

import pytest

from domains.cloudeye.config import CloudEyeConfig, get_config


def test_defaults():
    config = CloudEyeConfig()

    assert config.retry.max_retries == 5
    assert config.query.window_ms == 3_600_000
    assert config.query.namespaces == ["SYS.ECS", "SYS.EVS", "SYS.RDS", "SYS.ELB"]
    assert config.cache.ttl_minutes == 15
    assert config.cache.sweep_interval_minutes == 30
    assert config.endpoints.resolve("ces", "eu-de") == "https://ces.eu-de.otc.t-systems.com"


def test_load_from_env_applies_typed_values(monkeypatch):
    monkeypatch.setenv("OTC_PROJECT_ID", "project-1")
    monkeypatch.setenv("API_MAX_RETRIES", "3")
    monkeypatch.setenv("API_RETRY_BACKOFF_MULTIPLIER", "1.5")
    monkeypatch.setenv("CLOUDEYE_NAMESPACES", "SYS.OBS, SYS.EVS")
    monkeypatch.setenv("EXPORT_RMS_LABELS", "resource_name,tags")
    monkeypatch.setenv("IGNORE_SSL_VERIFY", "true")
    monkeypatch.setenv("OTC_RMS_ENDPOINT", "https://rms.example.test/")

    config = CloudEyeConfig.load_from_env()

    assert config.auth.project_id == "project-1"
    assert config.retry.max_retries == 3
    assert config.retry.backoff_multiplier == 1.5
    assert config.query.namespaces == ["SYS.OBS", "SYS.EVS"]
    assert config.enrichment.is_enabled("tags")
    assert not config.enrichment.is_enabled("project_id")
    assert config.endpoints.ignore_ssl_verify is True
    assert config.endpoints.resolve("rms", "eu-de") == "https://rms.example.test"


def test_invalid_env_value_keeps_default(monkeypatch):
    monkeypatch.setenv("SCRAPE_MAX_WORKERS", "many")

    assert CloudEyeConfig.load_from_env().scrape.max_workers == 16


def test_validate_reports_every_problem():
    config = CloudEyeConfig()
    config.query.page_limit = 0
    config.enrichment.export_rms_labels = ["colour"]

    with pytest.raises(ValueError) as exc_info:
        config.validate()

    message = str(exc_info.value)
    assert "OTC_PROJECT_ID" in message
    assert "page_limit" in message
    assert "colour" in message


def test_get_config_validates(monkeypatch):
    monkeypatch.delenv("OTC_PROJECT_ID", raising=False)

    with pytest.raises(ValueError):
        get_config()


def test_to_retry_policy():
    config = CloudEyeConfig()
    config.retry.initial_delay_seconds = 2.0

    policy = config.to_retry_policy()

    assert policy.max_retries == 5
    assert policy.backoff_for(0) == 2.0
    assert policy.max_backoff == 120.0
