"""Auth requirement policies.

A policy is a predicate over :class:`~shapecli.models.OperationDescriptor`
answering "does this command need ``--token``?". Every generator takes the
resulting boolean rather than inspecting traits itself, so a new auth model
only needs a new policy.
"""

from __future__ import annotations

from typing import Callable

from shapecli.models import OperationDescriptor, ServiceDescriptor

AuthPolicy = Callable[[OperationDescriptor], bool]


def bearer_auth_policy(service: ServiceDescriptor) -> AuthPolicy:
    """Require a bearer token on every operation unless the operation is exempt.

    Services without ``@httpBearerAuth`` get :func:`no_auth_policy`.
    """
    if not service.requires_auth:
        return no_auth_policy

    def _requires_token(operation: OperationDescriptor) -> bool:
        return not operation.auth_exempt

    return _requires_token


def no_auth_policy(operation: OperationDescriptor) -> bool:
    """Never require a token."""
    return False
