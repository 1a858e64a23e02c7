"""Configuration system for the CloudEye exporter, loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from domains.cloudeye.constants import DEFAULT_NAMESPACES, RMS_LABEL_TOGGLES
from utils.logging.logging_manager import LogManager
from utils.retry import RetryPolicy


def _parse_bool(value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in {"true", "1", "yes", "on"}:
        return True
    if normalized in {"false", "0", "no", "off", ""}:
        return False
    raise ValueError(f"not a boolean: {value}")


def _parse_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class AuthConfig:
    """Project identity and credentials of the monitored tenant."""

    region: str = "eu-de"
    project_id: str = ""
    project_name: str = ""
    domain_id: str = ""
    domain_name: str = ""

    # Token sent as X-Auth-Token to CES, RMS and EVS
    auth_token: str = ""

    # AK/SK pair for the S3-compatible object storage API
    access_key: str = ""
    secret_key: str = ""


@dataclass
class EndpointConfig:
    """Where and how the remote APIs are reached."""

    # Formatted with service and region, e.g. https://ces.eu-de.otc.t-systems.com
    endpoint_template: str = "https://{service}.{region}.otc.t-systems.com"

    # Per-service overrides, empty means "use the template"
    ces_endpoint: str = ""
    rms_endpoint: str = ""
    evs_endpoint: str = ""
    obs_endpoint: str = ""

    proxy_url: str = ""
    ignore_ssl_verify: bool = False
    request_timeout_seconds: float = 30.0

    def resolve(self, service: str, region: str) -> str:
        override = getattr(self, f"{service}_endpoint", "")
        if override:
            return override.rstrip("/")
        return self.endpoint_template.format(service=service, region=region).rstrip("/")


@dataclass
class RetryConfig:
    max_retries: int = 5
    initial_delay_seconds: float = 5.0
    max_delay_seconds: float = 120.0
    backoff_multiplier: float = 2.0


@dataclass
class QueryConfig:
    """Which namespaces are scraped and over which window."""

    namespaces: list[str] = field(default_factory=lambda: _parse_csv(DEFAULT_NAMESPACES))

    # Page size for metric definition listing
    page_limit: int = 1000

    # Lookback window of the batch query (1 hour)
    window_ms: int = 3_600_000

    # 1 requests raw data points
    period_seconds: int = 1


@dataclass
class EnrichmentConfig:
    # Which inventory fields are copied onto labels
    export_rms_labels: list[str] = field(default_factory=lambda: list(RMS_LABEL_TOGGLES))

    def is_enabled(self, toggle: str) -> bool:
        return toggle in self.export_rms_labels


@dataclass
class CacheConfig:
    ttl_minutes: float = 15.0
    sweep_interval_minutes: float = 30.0


@dataclass
class ScrapeConfig:
    # Upper bound of concurrent per-data-point tasks in one namespace scrape
    max_workers: int = 16


@dataclass
class CloudEyeConfig:
    """Main configuration class of the CloudEye exporter."""

    auth: AuthConfig = field(default_factory=AuthConfig)
    endpoints: EndpointConfig = field(default_factory=EndpointConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    query: QueryConfig = field(default_factory=QueryConfig)
    enrichment: EnrichmentConfig = field(default_factory=EnrichmentConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    scrape: ScrapeConfig = field(default_factory=ScrapeConfig)

    @classmethod
    def load_from_env(cls) -> CloudEyeConfig:
        """Load configuration from environment variables.

        Invalid values are logged and the default is kept.
        """
        config = cls()

        env_mappings = {
            "OTC_REGION": ("auth", "region", str),
            "OTC_PROJECT_ID": ("auth", "project_id", str),
            "OTC_PROJECT_NAME": ("auth", "project_name", str),
            "OTC_DOMAIN_ID": ("auth", "domain_id", str),
            "OTC_DOMAIN_NAME": ("auth", "domain_name", str),
            "OTC_AUTH_TOKEN": ("auth", "auth_token", str),
            "OTC_ACCESS_KEY": ("auth", "access_key", str),
            "OTC_SECRET_KEY": ("auth", "secret_key", str),
            "OTC_ENDPOINT_TEMPLATE": ("endpoints", "endpoint_template", str),
            "OTC_CES_ENDPOINT": ("endpoints", "ces_endpoint", str),
            "OTC_RMS_ENDPOINT": ("endpoints", "rms_endpoint", str),
            "OTC_EVS_ENDPOINT": ("endpoints", "evs_endpoint", str),
            "OTC_OBS_ENDPOINT": ("endpoints", "obs_endpoint", str),
            "HTTP_PROXY_URL": ("endpoints", "proxy_url", str),
            "IGNORE_SSL_VERIFY": ("endpoints", "ignore_ssl_verify", _parse_bool),
            "REQUEST_TIMEOUT_SECONDS": ("endpoints", "request_timeout_seconds", float),
            "API_MAX_RETRIES": ("retry", "max_retries", int),
            "API_RETRY_INITIAL_DELAY_SECONDS": ("retry", "initial_delay_seconds", float),
            "API_RETRY_MAX_DELAY_SECONDS": ("retry", "max_delay_seconds", float),
            "API_RETRY_BACKOFF_MULTIPLIER": ("retry", "backoff_multiplier", float),
            "CLOUDEYE_NAMESPACES": ("query", "namespaces", _parse_csv),
            "METRIC_QUERY_PAGE_LIMIT": ("query", "page_limit", int),
            "METRIC_QUERY_WINDOW_MS": ("query", "window_ms", int),
            "METRIC_QUERY_PERIOD_SECONDS": ("query", "period_seconds", int),
            "EXPORT_RMS_LABELS": ("enrichment", "export_rms_labels", _parse_csv),
            "CACHE_TTL_MINUTES": ("cache", "ttl_minutes", float),
            "CACHE_SWEEP_INTERVAL_MINUTES": ("cache", "sweep_interval_minutes", float),
            "SCRAPE_MAX_WORKERS": ("scrape", "max_workers", int),
        }

        for env_var, (section, key, type_func) in env_mappings.items():
            value = os.getenv(env_var)
            if value is not None:
                try:
                    typed_value = type_func(value)
                    section_obj = getattr(config, section)
                    setattr(section_obj, key, typed_value)
                except (ValueError, TypeError) as e:
                    logger = LogManager.get_instance().get_logger("CloudEyeConfig")
                    logger.warning(f"Invalid value for {env_var}: {value}, error: {e}")

        return config

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: With every problem found, one per line.
        """
        errors = []

        if not self.auth.project_id:
            errors.append("OTC_PROJECT_ID must be set")
        if not self.auth.region:
            errors.append("OTC_REGION must be set")

        if self.retry.max_retries < 0:
            errors.append("max_retries must be >= 0")
        if self.retry.initial_delay_seconds < 0 or self.retry.max_delay_seconds < 0:
            errors.append("retry delays must be >= 0")
        if self.retry.backoff_multiplier < 1:
            errors.append("backoff_multiplier must be >= 1")

        if not self.query.namespaces:
            errors.append("at least one namespace must be configured")
        if self.query.page_limit <= 0:
            errors.append("page_limit must be positive")
        if self.query.window_ms <= 0:
            errors.append("window_ms must be positive")
        if self.query.period_seconds <= 0:
            errors.append("period_seconds must be positive")

        unknown_toggles = set(self.enrichment.export_rms_labels) - set(RMS_LABEL_TOGGLES)
        if unknown_toggles:
            errors.append(f"unknown EXPORT_RMS_LABELS entries: {', '.join(sorted(unknown_toggles))}")

        if self.cache.ttl_minutes <= 0:
            errors.append("cache ttl_minutes must be positive")
        if self.cache.sweep_interval_minutes <= 0:
            errors.append("cache sweep_interval_minutes must be positive")

        if self.scrape.max_workers <= 0:
            errors.append("scrape max_workers must be positive")

        if self.endpoints.request_timeout_seconds <= 0:
            errors.append("request_timeout_seconds must be positive")

        if errors:
            raise ValueError("Configuration validation failed:\n" + "\n".join(errors))

    def to_retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_retries=self.retry.max_retries,
            initial_backoff=self.retry.initial_delay_seconds,
            max_backoff=self.retry.max_delay_seconds,
            multiplier=self.retry.backoff_multiplier,
        )


def get_config() -> CloudEyeConfig:
    """Loads and validates the configuration from the environment."""
    config = CloudEyeConfig.load_from_env()
    config.validate()
    return config
