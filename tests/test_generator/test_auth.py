"""Tests for shapecli.generator.auth."""

from __future__ import annotations

from shapecli.generator.auth import bearer_auth_policy, no_auth_policy
from shapecli.models import ServiceDescriptor


class TestBearerAuthPolicy:
    def test_every_operation_but_exempt_ones(self, widget_service: ServiceDescriptor) -> None:
        policy = bearer_auth_policy(widget_service)
        assert {op.name: policy(op) for op in widget_service.operations} == {
            "CreateWidget": True,
            "Login": False,
            "UploadManifest": True,
            "ConfigureWidget": True,
            "GetStatus": True,
        }

    def test_service_without_bearer_auth(self, widget_service: ServiceDescriptor) -> None:
        service = widget_service.model_copy(update={"requires_auth": False})
        policy = bearer_auth_policy(service)
        assert policy is no_auth_policy
        assert not any(policy(op) for op in service.operations)
