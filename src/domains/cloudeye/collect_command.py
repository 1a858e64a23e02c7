import json
from argparse import ArgumentParser, Namespace

from prometheus_client import CollectorRegistry, generate_latest

from utils.cache_manager import EnrichmentCache
from utils.command.base_command import BaseCommand
from utils.env_loader import ensure_cloudeye_env_loaded
from utils.error.error_manager import handle_generic_exception
from utils.logging.logging_manager import LogManager
from utils.retry import RetryExecutor

from .clients import build_clients
from .cloudeye_collector import CloudEyeCollector
from .config import get_config
from .metric_export_service import MetricExportService, filter_supported_namespaces


class CollectCommand(BaseCommand):
    @staticmethod
    def get_name() -> str:
        return "collect"

    @staticmethod
    def get_description() -> str:
        return "Run one CloudEye scrape and print Prometheus exposition text or JSON records"

    @staticmethod
    def get_help() -> str:
        return """
                Scrape CloudEye metrics for the configured namespaces, resolve and enrich every
                series, and print the result.

                Examples:
                python src/main.py cloudeye collect
                python src/main.py cloudeye collect --namespaces SYS.ECS SYS.EVS
                python src/main.py cloudeye collect --format json --output-file ./output/metrics.json

                Setup (.env):
                    OTC_REGION=eu-de
                    OTC_PROJECT_ID=...
                    OTC_DOMAIN_ID=...
                    OTC_AUTH_TOKEN=...
                    OTC_ACCESS_KEY=... / OTC_SECRET_KEY=...   (object storage)
            """

    @staticmethod
    def get_arguments(parser: ArgumentParser):
        parser.add_argument(
            "--namespaces",
            nargs="+",
            help="Namespaces to scrape (default: CLOUDEYE_NAMESPACES)",
        )
        parser.add_argument(
            "--format",
            choices=["prometheus", "json"],
            default="prometheus",
            help="Output format (default: prometheus)",
        )
        parser.add_argument(
            "--output-file",
            help="Write the output to this file instead of stdout",
        )

    @staticmethod
    def main(args: Namespace):
        ensure_cloudeye_env_loaded()

        logger = LogManager.get_instance().get_logger("CollectCommand")

        try:
            config = get_config()
            namespaces = args.namespaces or config.query.namespaces
            clients = build_clients(config)
            retry_executor = RetryExecutor(config.to_retry_policy())

            ttl_seconds = config.cache.ttl_minutes * 60
            sweep_seconds = config.cache.sweep_interval_minutes * 60
            with EnrichmentCache("inventory", ttl_seconds, sweep_seconds) as inventory_cache, EnrichmentCache(
                "bucket", ttl_seconds, sweep_seconds
            ) as bucket_cache:
                service = MetricExportService(clients, config, inventory_cache, bucket_cache, retry_executor)
                logger.info(f"Starting CloudEye scrape for namespaces: {', '.join(namespaces)}")

                if args.format == "json":
                    output = CollectCommand.render_json(service, namespaces)
                else:
                    registry = CollectorRegistry()
                    registry.register(CloudEyeCollector(service, namespaces))
                    output = generate_latest(registry).decode("utf-8")

            if args.output_file:
                with open(args.output_file, "w", encoding="utf-8") as f:
                    f.write(output)
                logger.info(f"Output saved to: {args.output_file}")
            else:
                print(output)

        except Exception as e:
            logger.error(f"CloudEye collect failed: {e}")
            handle_generic_exception(e, "CloudEye collect", {"format": args.format})

    @staticmethod
    def render_json(service: MetricExportService, namespaces: list[str]) -> str:
        records = []
        for namespace in filter_supported_namespaces(namespaces):
            for record in service.export_namespace(namespace):
                records.append({"namespace": namespace, **record.model_dump(mode="json")})
        return json.dumps(records, indent=2)
