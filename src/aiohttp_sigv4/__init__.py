#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
"""Transparent AWS Signature Version 4 signing for aiohttp clients."""

from ._version import __version__
from .aio import SigV4Middleware, create_session
from .canonical import TRACE_HEADER, SignableRequest, build_signable_request
from .config import SigV4Config
from .credentials_resolvers import (
    CredentialsResolverChain,
    EnvironmentCredentialsResolver,
    IMDSCredentialsResolver,
    ProfileCredentialsResolver,
    StaticCredentialsResolver,
)
from .exceptions import (
    AWSSigV4Error,
    CredentialsUnavailableError,
    SigningFailedError,
    TargetAmbiguousWarning,
)
from .identity import AWSCredentialsIdentity, CredentialsProvider
from .interceptor import OutgoingRequest, SigV4Interceptor
from .signers import SigV4Signer
from .target import DEFAULT_REGION, SigningTarget, infer_target

__license__ = "Apache-2.0"

__all__ = (
    "DEFAULT_REGION",
    "TRACE_HEADER",
    "AWSCredentialsIdentity",
    "AWSSigV4Error",
    "CredentialsProvider",
    "CredentialsResolverChain",
    "CredentialsUnavailableError",
    "EnvironmentCredentialsResolver",
    "IMDSCredentialsResolver",
    "OutgoingRequest",
    "ProfileCredentialsResolver",
    "SigV4Config",
    "SigV4Interceptor",
    "SigV4Middleware",
    "SigV4Signer",
    "SignableRequest",
    "SigningFailedError",
    "SigningTarget",
    "StaticCredentialsResolver",
    "TargetAmbiguousWarning",
    "__version__",
    "build_signable_request",
    "create_session",
    "infer_target",
)
