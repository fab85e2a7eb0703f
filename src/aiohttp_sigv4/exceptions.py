#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0


class AWSSigV4Error(Exception):
    """Base exception type for all exceptions raised by aiohttp-sigv4."""


class CredentialsUnavailableError(AWSSigV4Error):
    """No credentials provider was able to produce a credential set."""


class SigningFailedError(AWSSigV4Error, ValueError):
    """The request could not be signed with the given inputs."""


class TargetAmbiguousWarning(UserWarning):
    """The signing service or region could not be determined from the request URL
    and a fallback value was used instead."""
