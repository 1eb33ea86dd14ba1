"""Tests for shapecli.compiler."""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

import pytest

from shapecli.compiler import (
    client_package,
    compile_service,
    default_cli_name,
    find_service_id,
    normalize_cli_name,
)
from shapecli.exceptions import CyclicShapeError, InvalidUsageError, SchemaError
from shapecli.generator.auth import no_auth_policy
from shapecli.models import ClientPackage, GeneratorSettings, ServiceDescriptor


class TestCompileService:
    def test_file_layout(
        self,
        widget_model: dict[str, Any],
        widget_settings: GeneratorSettings,
        widget_client: ClientPackage,
    ) -> None:
        compiled = compile_service(widget_model, widget_settings, widget_client)
        assert compiled.cli_name == "widget-cli"
        assert compiled.package_name == "widget_cli"
        assert [f.path for f in compiled.files] == [
            "pyproject.toml",
            "src/widget_cli/__init__.py",
            "src/widget_cli/__main__.py",
            "src/widget_cli/cli.py",
        ]

    def test_output_is_deterministic(
        self,
        widget_model: dict[str, Any],
        widget_settings: GeneratorSettings,
        widget_client: ClientPackage,
    ) -> None:
        first = compile_service(widget_model, widget_settings, widget_client)
        second = compile_service(copy.deepcopy(widget_model), widget_settings, widget_client)
        assert first.files == second.files

    def test_commands_follow_operation_order(
        self,
        widget_model: dict[str, Any],
        widget_settings: GeneratorSettings,
        widget_client: ClientPackage,
    ) -> None:
        source = compile_service(widget_model, widget_settings, widget_client).file(
            "src/widget_cli/cli.py"
        ).content
        positions = [
            source.index(f"@app.command('{name}'")
            for name in ["CreateWidget", "Login", "UploadManifest", "ConfigureWidget", "GetStatus"]
        ]
        assert positions == sorted(positions)

    def test_login_has_no_token(
        self,
        widget_model: dict[str, Any],
        widget_settings: GeneratorSettings,
        widget_client: ClientPackage,
    ) -> None:
        source = compile_service(widget_model, widget_settings, widget_client).file(
            "src/widget_cli/cli.py"
        ).content
        login = source.split("@app.command('Login'")[1].split("@app.command(")[0]
        assert "--token" not in login
        assert "client = _get_client()" in login

    def test_custom_auth_policy(
        self,
        widget_model: dict[str, Any],
        widget_settings: GeneratorSettings,
        widget_client: ClientPackage,
    ) -> None:
        compiled = compile_service(
            widget_model, widget_settings, widget_client, auth_policy=no_auth_policy
        )
        source = compiled.file("src/widget_cli/cli.py").content
        assert "--token" not in source
        assert "_get_client(params.pop(" not in source

    def test_metadata_defaults(
        self, widget_model: dict[str, Any], widget_client: ClientPackage
    ) -> None:
        compiled = compile_service(widget_model, GeneratorSettings(), widget_client)
        assert compiled.cli_name == "widget-service"
        init = compiled.file("src/widget_service/__init__.py").content
        assert init.startswith("'Manage widgets.'")
        assert "__version__ = '0.3.0'" in init

    def test_cli_version_and_endpoint_override(
        self, widget_model: dict[str, Any], widget_client: ClientPackage
    ) -> None:
        settings = GeneratorSettings(
            cli_name="Widget CLI",
            cli_version="9.9.9",
            default_endpoint="https://api.example.com",
        )
        compiled = compile_service(widget_model, settings, widget_client)
        assert compiled.cli_name == "widget-cli"
        assert 'version = "9.9.9"' in compiled.file("pyproject.toml").content
        cli = compiled.file("src/widget_cli/cli.py").content
        assert "DEFAULT_ENDPOINT = 'https://api.example.com'" in cli

    def test_client_requirement_in_pyproject(
        self,
        widget_model: dict[str, Any],
        widget_settings: GeneratorSettings,
        widget_client: ClientPackage,
    ) -> None:
        client = client_package(widget_client, "widget-client>=0.3,<1")
        compiled = compile_service(widget_model, widget_settings, client)
        assert '"widget-client>=0.3,<1",' in compiled.file("pyproject.toml").content

    def test_cycle_aborts(self, cyclic_model: dict[str, Any], widget_client: ClientPackage) -> None:
        with pytest.raises(CyclicShapeError):
            compile_service(cyclic_model, GeneratorSettings(), widget_client)

    def test_token_member_on_authenticated_operation(
        self, widget_model: dict[str, Any], widget_client: ClientPackage
    ) -> None:
        model = copy.deepcopy(widget_model)
        members = model["shapes"]["example.widgets#CreateWidgetInput"]["members"]
        members["token"] = {"target": "smithy.api#String"}
        with pytest.raises(SchemaError, match="CreateWidget has an input member named 'token'"):
            compile_service(model, GeneratorSettings(), widget_client)

    def test_token_member_allowed_without_auth(
        self, widget_model: dict[str, Any], widget_client: ClientPackage
    ) -> None:
        model = copy.deepcopy(widget_model)
        members = model["shapes"]["example.widgets#CreateWidgetInput"]["members"]
        members["token"] = {"target": "smithy.api#String"}
        compiled = compile_service(
            model, GeneratorSettings(), widget_client, auth_policy=no_auth_policy
        )
        source = compiled.file("src/widget_service/cli.py").content
        assert source.count("'--token',") == 1

    def test_unknown_service(
        self, widget_model: dict[str, Any], widget_client: ClientPackage
    ) -> None:
        settings = GeneratorSettings(service="example.widgets#Other")
        with pytest.raises(SchemaError):
            compile_service(widget_model, settings, widget_client)

    def test_invalid_cli_name(
        self, widget_model: dict[str, Any], widget_client: ClientPackage
    ) -> None:
        with pytest.raises(InvalidUsageError, match="Invalid CLI name"):
            compile_service(widget_model, GeneratorSettings(cli_name="9lives"), widget_client)


class TestFindServiceId:
    def test_single_service(self, widget_model: dict[str, Any]) -> None:
        assert find_service_id(widget_model) == "example.widgets#WidgetService"

    def test_no_service(self) -> None:
        with pytest.raises(InvalidUsageError, match="no service"):
            find_service_id({"smithy": "2.0", "shapes": {}})

    def test_several_services(self, widget_model: dict[str, Any]) -> None:
        model = copy.deepcopy(widget_model)
        model["shapes"]["example.widgets#Admin"] = {"type": "service"}
        with pytest.raises(InvalidUsageError, match="--service"):
            find_service_id(model)


class TestCliNames:
    def test_default_from_service(self, widget_service: ServiceDescriptor) -> None:
        assert default_cli_name(widget_service) == "widget-service"

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("widget-cli", "widget-cli"),
            ("Widget CLI", "widget-cli"),
            ("  my   tool ", "my-tool"),
            ("tool_2", "tool_2"),
        ],
    )
    def test_normalize(self, raw: str, expected: str) -> None:
        assert normalize_cli_name(raw) == expected

    @pytest.mark.parametrize("raw", ["", "9lives", "my.tool", "-dash", "tool!"])
    def test_reject(self, raw: str) -> None:
        with pytest.raises(InvalidUsageError):
            normalize_cli_name(raw)


class TestClientPackage:
    def test_no_requirement(self, widget_client: ClientPackage) -> None:
        assert client_package(widget_client) is widget_client

    def test_directory_becomes_direct_reference(
        self, widget_client: ClientPackage, tmp_path: Path
    ) -> None:
        client = client_package(widget_client, str(tmp_path))
        assert client.dependency() == f"widget-client @ {tmp_path.resolve().as_uri()}"

    def test_verbatim_requirement(self, widget_client: ClientPackage) -> None:
        assert client_package(widget_client, "widget-client~=0.3").dependency() == (
            "widget-client~=0.3"
        )
