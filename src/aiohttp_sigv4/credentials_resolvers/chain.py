#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import logging
from collections.abc import Sequence
from typing import Final

from ..exceptions import CredentialsUnavailableError
from ..identity import AWSCredentialsIdentity, CredentialsProvider
from .environment import EnvironmentCredentialsResolver

logger: Final = logging.getLogger(__name__)


class CredentialsResolverChain(CredentialsProvider):
    """Attempts to resolve credentials by checking a sequence of providers.

    If a provider raises a :py:class:`CredentialsUnavailableError`, the next
    provider in the chain will be attempted. Nothing is cached between calls, so
    every call observes rotated or expired credentials.
    """

    def __init__(self, providers: Sequence[CredentialsProvider] | None = None) -> None:
        """Construct a CredentialsResolverChain.

        :param providers: The ordered providers to resolve credentials from. If not
            set, only environment variables are consulted.
        """
        if providers is None:
            providers = (EnvironmentCredentialsResolver(),)
        if len(providers) == 0:
            raise ValueError(
                "A credentials provider chain requires at least one provider."
            )
        self._providers: tuple[CredentialsProvider, ...] = tuple(providers)

    @property
    def providers(self) -> tuple[CredentialsProvider, ...]:
        return self._providers

    async def get_identity(self) -> AWSCredentialsIdentity:
        logger.debug("Attempting to resolve credentials from provider chain.")
        last_error: CredentialsUnavailableError | None = None
        for provider in self._providers:
            try:
                logger.debug(
                    "Attempting to resolve credentials from %s.", type(provider)
                )
                return await provider.get_identity()
            except CredentialsUnavailableError as e:
                logger.debug(
                    "Failed to resolve credentials from %s: %s", type(provider), e
                )
                last_error = e

        raise CredentialsUnavailableError(
            "None of the configured credentials providers were able to resolve "
            "credentials."
        ) from last_error
