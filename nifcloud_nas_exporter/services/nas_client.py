"""NIFCLOUD NAS statistics API client.

Builds query-protocol requests, signs them with AWS Signature V4 (the scheme the
NIFCLOUD NAS endpoint accepts) and decodes the XML answers into plain dicts
shaped like boto-style responses.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlencode
import httpx
from botocore.auth import SigV4Auth
from botocore.awsrequest import AWSRequest
from botocore.credentials import Credentials
from botocore.exceptions import BotoCoreError
from defusedxml import DefusedXmlException, ElementTree

from ..utils.errors import ParseFailureError, RequestBuildError, TransportError


DEFAULT_ENDPOINT_URL = "https://{region}.nas.api.nifcloud.com/"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def _local_name(tag: str) -> str:
    """Strip the XML namespace from an element tag."""
    return tag.rsplit('}', 1)[-1]


class NASClient:
    """Signed client for the NAS GetMetricStatistics action."""

    SERVICE_NAME = "nas"
    API_VERSION = "N2016-02-24"
    DIMENSION_NAME = "NASInstanceIdentifier"
    CONTENT_TYPE = "application/x-www-form-urlencoded; charset=utf-8"

    def __init__(
        self,
        access_key_id: str,
        secret_access_key: str,
        endpoint_url: Optional[str] = None,
        timeout: float = 30.0,
        http_client: Optional[httpx.Client] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize NAS client.

        Args:
            access_key_id: Static access key ID
            secret_access_key: Static secret access key
            endpoint_url: Endpoint template, "{region}" is substituted per request
            timeout: Per-request timeout in seconds
            http_client: Preconfigured httpx client (tests inject a mock transport)
            logger: Logger instance
        """
        self.credentials = Credentials(access_key_id, secret_access_key)
        self.endpoint_url = endpoint_url or DEFAULT_ENDPOINT_URL
        self.logger = (logger or logging.getLogger(__name__)).getChild(self.__class__.__name__)
        self._http = http_client or httpx.Client(timeout=timeout)

    def endpoint_for(self, region: str) -> str:
        return self.endpoint_url.format(region=region)

    def build_metric_statistics_request(
        self,
        metric_name: str,
        instance_identifier: str,
        region: str,
        start_time: datetime,
        end_time: datetime
    ) -> AWSRequest:
        """
        Build and sign a GetMetricStatistics request.

        Args:
            metric_name: Vendor metric name (e.g. "FreeStorageSpace")
            instance_identifier: NAS instance identifier
            region: Region hosting the instance
            start_time: Window start (UTC)
            end_time: Window end (UTC)

        Returns:
            AWSRequest: Signed request ready to send

        Raises:
            RequestBuildError: If encoding or signing fails
        """
        params = [
            ("Action", "GetMetricStatistics"),
            ("Version", self.API_VERSION),
            ("Dimensions.member.1.Name", self.DIMENSION_NAME),
            ("Dimensions.member.1.Value", instance_identifier),
            ("MetricName", metric_name),
            ("StartTime", start_time.strftime(TIMESTAMP_FORMAT)),
            ("EndTime", end_time.strftime(TIMESTAMP_FORMAT)),
        ]

        try:
            request = AWSRequest(
                method="POST",
                url=self.endpoint_for(region),
                data=urlencode(params),
                headers={"Content-Type": self.CONTENT_TYPE},
            )
            SigV4Auth(self.credentials, self.SERVICE_NAME, region).add_auth(request)
        except (BotoCoreError, ValueError, KeyError) as e:
            raise RequestBuildError(f"failed building request: {e}") from e

        return request

    def get_metric_statistics(
        self,
        metric_name: str,
        instance_identifier: str,
        region: str,
        start_time: datetime,
        end_time: datetime
    ) -> Dict[str, List[Dict[str, str]]]:
        """
        Query statistics for one metric over a time window.

        Returns:
            Dict: {"Datapoints": [{"Timestamp": ..., "Sum": ..., ...}, ...]}

        Raises:
            RequestBuildError: If the request cannot be built
            TransportError: On network failure or non-success response
            ParseFailureError: If the response body is not valid XML
        """
        request = self.build_metric_statistics_request(
            metric_name, instance_identifier, region, start_time, end_time
        )
        self.logger.debug(f"GetMetricStatistics {metric_name} for {instance_identifier} via {request.url}")

        try:
            response = self._http.post(
                request.url,
                content=request.body,
                headers=dict(request.headers.items()),
            )
        except httpx.TimeoutException as e:
            raise TransportError(f"request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"request failed: {e}") from e

        if not response.is_success:
            error_code, error_message = self._parse_error(response.content)
            detail = f"{error_code}: {error_message}" if error_code else response.reason_phrase
            raise TransportError(
                f"HTTP {response.status_code} from {request.url} ({detail})",
                status_code=response.status_code,
                error_code=error_code,
            )

        return {"Datapoints": self._parse_datapoints(response.content)}

    def close(self):
        self._http.close()

    @staticmethod
    def _parse_datapoints(body: bytes) -> List[Dict[str, str]]:
        """
        Decode every Datapoints/member element of a response.

        Raises:
            ParseFailureError: If the body is not XML or declares entities
        """
        try:
            root = ElementTree.fromstring(body)
        except (ElementTree.ParseError, DefusedXmlException) as e:
            raise ParseFailureError(f"could not decode response body: {e}") from e

        datapoints = []
        for element in root.iter():
            if _local_name(element.tag) != "Datapoints":
                continue
            for member in element:
                datapoints.append({
                    _local_name(child.tag): (child.text or "").strip()
                    for child in member
                })
        return datapoints

    @staticmethod
    def _parse_error(body: bytes) -> Tuple[Optional[str], Optional[str]]:
        """Extract (Code, Message) from an error response, if any."""
        try:
            root = ElementTree.fromstring(body)
        except (ElementTree.ParseError, DefusedXmlException):
            return None, None

        code = message = None
        for element in root.iter():
            name = _local_name(element.tag)
            if name == "Code" and code is None:
                code = (element.text or "").strip()
            elif name == "Message" and message is None:
                message = (element.text or "").strip()
        return code, message
