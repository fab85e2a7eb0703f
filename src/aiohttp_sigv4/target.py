#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
"""Inference of the signing service and region from a request URL."""

import logging
import re
import warnings
from dataclasses import dataclass
from typing import Final

from yarl import URL

from .exceptions import TargetAmbiguousWarning

logger: Final = logging.getLogger(__name__)

DEFAULT_REGION: Final = "us-east-1"
"""Region used when none is configured and none can be read from the host."""

# <service>.<region>.amazonaws.com or <service>.amazonaws.com, with any number of
# leading labels and the optional China partition suffix.
_HOST_RE: Final = re.compile(r"([^.]+)\.(?:([^.]*)\.)?amazonaws\.com(?:\.cn)?$")

# A region label such as eu-west-1, us-gov-west-1 or us-isob-east-1.
_REGION_LABEL_RE: Final = re.compile(r"^[a-z]{2}(?:-gov|-iso[a-z]*)?-[a-z]+-\d+$")

# Services whose hosts put the region label before the service label.
_REGION_FIRST_SERVICES: Final = frozenset({"es", "aoss"})

# Host labels that name a different signing service.
_SERVICE_ALIASES: Final = {"email": "ses"}


@dataclass(frozen=True, slots=True)
class SigningTarget:
    """The service and region a request is signed for."""

    service: str
    region: str


def match_host(host: str) -> tuple[str | None, str | None]:
    """Read the service and region out of an AWS hostname.

    :param host: The hostname of the request, without port.
    :returns: A ``(service, region)`` pair. Either element is None when the host
        does not encode it.
    """
    host = host.lower().rstrip(".")
    match = _HOST_RE.search(host)
    if match is None:
        return _match_region_label(host)

    service: str | None = match.group(1)
    region: str | None = match.group(2) or None

    if region in _REGION_FIRST_SERVICES:
        service, region = region, service

    if region == "s3":
        # Virtual-hosted bucket on the global endpoint: <bucket>.s3.amazonaws.com
        service, region = "s3", DEFAULT_REGION
    else:
        for label in (service, region):
            if label is not None and label.startswith("s3-"):
                # Legacy dash-region endpoint: s3-<region>.amazonaws.com
                service, region = "s3", label[3:]
                break

    if service is not None:
        service = _SERVICE_ALIASES.get(service, service)
    return service, region


def _match_region_label(host: str) -> tuple[str | None, str | None]:
    # <...>.<service>.<region>.<any domain>, e.g. API Gateway behind a custom domain.
    labels = host.split(".")
    for index, label in enumerate(labels[:-1]):
        if _REGION_LABEL_RE.match(label):
            return (labels[index - 1] if index > 0 else None), label
    return None, None


def infer_target(
    url: URL | str, *, service: str | None = None, region: str | None = None
) -> SigningTarget:
    """Fill in whichever of ``service`` and ``region`` was not configured.

    Inference never fails. An unknown region falls back to :py:data:`DEFAULT_REGION`
    and an unknown service falls back to the empty string, in which case a
    :py:class:`TargetAmbiguousWarning` is emitted.

    :param url: The URL of the request being signed.
    :param service: The configured service, if any.
    :param region: The configured region, if any.
    """
    if service is not None and region is not None:
        return SigningTarget(service=service, region=region)

    host = URL(url).raw_host or ""
    inferred_service, inferred_region = match_host(host)

    if service is None:
        if inferred_service is None:
            warnings.warn(
                f"Unable to infer the signing service from host {host!r}. Configure "
                "the service explicitly to sign requests for this host.",
                TargetAmbiguousWarning,
                stacklevel=2,
            )
            service = ""
        else:
            service = inferred_service

    if region is None:
        if inferred_region is None:
            logger.debug(
                "No region found in host %r, defaulting to %s", host, DEFAULT_REGION
            )
            region = DEFAULT_REGION
        else:
            region = inferred_region

    return SigningTarget(service=service, region=region)
