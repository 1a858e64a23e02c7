from domains.cloudeye.clients.ces_client import CesClient
from domains.cloudeye.models import MetricDefinition
from utils.logging.logging_manager import LogManager
from utils.retry import RetryExecutor


class MetricCatalog:
    """Discovers the metric definitions of a namespace, following the listing's pagination."""

    def __init__(self, ces_client: CesClient, retry_executor: RetryExecutor, page_limit: int = 1000):
        self.ces_client = ces_client
        self.retry_executor = retry_executor
        self.page_limit = page_limit
        self.logger = LogManager.get_instance().get_logger("MetricCatalog")

    def list_definitions(self, namespace: str) -> list[MetricDefinition]:
        """Lists every metric definition of `namespace`.

        Each page goes through the retry executor; a page that still fails aborts the listing.

        Args:
            namespace (str): Namespace such as "SYS.ECS".

        Returns:
            list[MetricDefinition]: All definitions in listing order, empty when the namespace has none.

        Raises:
            OperationFailedError: When a page cannot be fetched.
        """
        definitions: list[MetricDefinition] = []
        marker: str | None = None
        seen_markers: set[str] = set()
        page_number = 1

        while True:
            current_marker = marker
            page = self.retry_executor.execute(
                lambda: self.ces_client.list_metric_definitions(namespace, self.page_limit, current_marker),
                f"list metric definitions {namespace} page {page_number}",
            )
            definitions.extend(page.definitions)
            self.logger.debug(f"Page {page_number} of {namespace}: {len(page.definitions)} definitions")

            if not page.definitions or not page.next_marker:
                break
            if page.next_marker in seen_markers:
                self.logger.warning(f"Pagination marker {page.next_marker} repeated for {namespace}, stopping")
                break
            seen_markers.add(page.next_marker)
            marker = page.next_marker
            page_number += 1

        self.logger.info(f"Found {len(definitions)} metric definitions in {namespace}")
        return definitions
