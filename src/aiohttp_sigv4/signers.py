#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import datetime
from typing import Final

from botocore.auth import S3SigV4Auth, SigV4Auth
from botocore.awsrequest import AWSRequest
from botocore.credentials import Credentials
from botocore.exceptions import BotoCoreError
from multidict import CIMultiDict

from .canonical import SignableRequest
from .exceptions import SigningFailedError
from .identity import AWSCredentialsIdentity

SIGV4_TIMESTAMP_FORMAT: Final = "%Y%m%dT%H%M%SZ"

# S3 paths are signed as sent and S3 requires the payload hash as a header.
_S3_SERVICES: Final = frozenset({"s3", "s3-object-lambda"})


def format_date(value: datetime.datetime) -> str:
    """Format a datetime as a SigV4 timestamp, treating naive values as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=datetime.UTC)
    return value.astimezone(datetime.UTC).strftime(SIGV4_TIMESTAMP_FORMAT)


class _FixedTimestampMixin:
    """Signs with a given timestamp instead of the current time."""

    def __init__(
        self,
        credentials: Credentials,
        service_name: str,
        region_name: str,
        *,
        timestamp: str,
    ) -> None:
        super().__init__(  # type: ignore[call-arg]
            credentials, service_name, region_name
        )
        self._timestamp = timestamp

    def _modify_request_before_signing(self, request: AWSRequest) -> None:
        # add_auth stamps the wall-clock time right before this hook runs.
        request.context["timestamp"] = self._timestamp
        super()._modify_request_before_signing(request)  # type: ignore[misc]


class _FixedTimestampSigV4Auth(_FixedTimestampMixin, SigV4Auth):
    pass


class _FixedTimestampS3SigV4Auth(_FixedTimestampMixin, S3SigV4Auth):
    pass


class SigV4Signer:
    """Request signer for applying the AWS Signature Version 4 algorithm.

    The signature itself is computed by botocore.
    """

    def sign(
        self,
        *,
        request: SignableRequest,
        identity: AWSCredentialsIdentity,
        date: str,
    ) -> CIMultiDict[str]:
        """Compute the signed header set for the supplied request.

        The request is not modified. The returned headers contain every header of
        the request plus the ones required by SigV4, including ``Authorization``.

        :param request: The SignableRequest to sign.
        :param identity: A set of credentials representing an AWS Identity or role
            capacity.
        :param date: The signing timestamp in ``YYYYMMDDTHHMMSSZ`` form. An
            ``X-Amz-Date`` header already present on the request takes precedence.
        """
        self._validate_identity(identity=identity)
        date = request.headers.get("X-Amz-Date", date)
        self._validate_date(date)

        aws_request = AWSRequest(
            method=request.method,
            url=request.url,
            headers=request.headers,
            data=request.body,
        )
        auth_cls = (
            _FixedTimestampS3SigV4Auth
            if request.service in _S3_SERVICES
            else _FixedTimestampSigV4Auth
        )
        auth = auth_cls(
            Credentials(
                identity.access_key_id,
                identity.secret_access_key,
                identity.session_token,
            ),
            request.service,
            request.region,
            timestamp=date,
        )
        try:
            auth.add_auth(aws_request)
        except BotoCoreError as e:
            raise SigningFailedError(f"Unable to sign request: {e}") from e
        return CIMultiDict(aws_request.headers.items())

    def _validate_identity(self, *, identity: AWSCredentialsIdentity) -> None:
        """Perform runtime and expiration checks before attempting signing."""
        if not isinstance(identity, AWSCredentialsIdentity):
            raise SigningFailedError(
                "Received unexpected value for identity parameter. Expected "
                f"AWSCredentialsIdentity but received {type(identity)}."
            )
        elif identity.is_expired:
            raise SigningFailedError(
                f"Provided identity expired at {identity.expiration}. Please "
                "refresh the credentials or update the expiration parameter."
            )

    def _validate_date(self, date: str) -> None:
        try:
            datetime.datetime.strptime(date, SIGV4_TIMESTAMP_FORMAT)
        except ValueError as e:
            raise SigningFailedError(
                f"Invalid signing date {date!r}, expected format "
                f"{SIGV4_TIMESTAMP_FORMAT!r}."
            ) from e
