from typing import Any

import boto3  # type: ignore
from botocore.config import Config as BotoConfig  # type: ignore
from botocore.exceptions import (  # type: ignore
    BotoCoreError,
    ClientError,
    ConnectionClosedError,
    EndpointConnectionError,
)

from domains.cloudeye.clients.error import CloudApiConnectionError, CloudApiError
from utils.logging.logging_manager import LogManager

NO_TAG_SET_CODES = {"NoSuchTagSet", "NoSuchTagSetError"}


class ObsClient:
    """Client for Object Storage Service (OBS) bucket metadata through its S3-compatible API."""

    def __init__(
        self,
        endpoint_url: str,
        access_key: str,
        secret_key: str,
        region: str,
        timeout: float = 30.0,
        proxy_url: str = "",
        verify_ssl: bool = True,
        s3_client: Any | None = None,
    ):
        """
        Args:
            endpoint_url (str): OBS endpoint, e.g. https://obs.eu-de.otc.t-systems.com.
            access_key (str): Access key id.
            secret_key (str): Secret access key.
            region (str): Region name used for request signing.
            timeout (float): Connect and read timeout in seconds.
            proxy_url (str): Optional HTTP(S) proxy.
            verify_ssl (bool): Whether TLS certificates are verified.
            s3_client (Optional[Any]): Pre-built boto3 S3 client, mainly for tests.
        """
        self.logger = LogManager.get_instance().get_logger("ObsClient")
        self.endpoint_url = endpoint_url
        if s3_client is not None:
            self.s3_client = s3_client
            return

        boto_config = BotoConfig(
            connect_timeout=timeout,
            read_timeout=timeout,
            retries={"max_attempts": 1},
            proxies={"http": proxy_url, "https": proxy_url} if proxy_url else None,
        )
        self.s3_client = boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
            verify=verify_ssl,
            config=boto_config,
        )

    def get_bucket_tags(self, bucket: str) -> dict[str, str]:
        """Returns the bucket's tags; a bucket without a tag set yields an empty map."""
        try:
            response = self.s3_client.get_bucket_tagging(Bucket=bucket)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            status_code = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
            if error_code in NO_TAG_SET_CODES or status_code == 404:
                self.logger.debug(f"Bucket {bucket} has no tags")
                return {}
            raise self._to_api_error(e, "get_bucket_tagging", bucket) from e
        except BotoCoreError as e:
            raise self._to_api_error(e, "get_bucket_tagging", bucket) from e

        return {str(tag.get("Key")): str(tag.get("Value") or "") for tag in response.get("TagSet") or [] if tag.get("Key")}

    def get_bucket_location(self, bucket: str) -> dict[str, str]:
        """Returns bucket information, currently its location (region)."""
        try:
            response = self.s3_client.get_bucket_location(Bucket=bucket)
        except (ClientError, BotoCoreError) as e:
            raise self._to_api_error(e, "get_bucket_location", bucket) from e
        return {"location": response.get("LocationConstraint") or ""}

    def _to_api_error(self, error: Exception, operation: str, bucket: str) -> CloudApiError:
        if isinstance(error, ClientError):
            return CloudApiError(
                f"OBS {operation} failed for bucket {bucket}: {error}",
                endpoint=self.endpoint_url,
                status_code=error.response.get("ResponseMetadata", {}).get("HTTPStatusCode"),
                error_code=error.response.get("Error", {}).get("Code"),
                bucket=bucket,
            )
        if isinstance(error, (EndpointConnectionError, ConnectionClosedError)) or "timeout" in str(error).lower():
            return CloudApiConnectionError(
                f"OBS {operation} failed for bucket {bucket}: {error}", endpoint=self.endpoint_url, bucket=bucket
            )
        return CloudApiError(f"OBS {operation} failed for bucket {bucket}: {error}", endpoint=self.endpoint_url, bucket=bucket)
