#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from datetime import UTC, datetime

import pytest
from aiohttp_sigv4 import AWSCredentialsIdentity, StaticCredentialsResolver

FIXED_INSTANT = datetime(2020, 7, 1, 10, 0, 0, tzinfo=UTC)


@pytest.fixture
def identity() -> AWSCredentialsIdentity:
    return AWSCredentialsIdentity(access_key_id="unicorn", secret_access_key="rainbow")


@pytest.fixture
def static_provider(identity: AWSCredentialsIdentity) -> StaticCredentialsResolver:
    return StaticCredentialsResolver(credentials=identity)


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_INSTANT
