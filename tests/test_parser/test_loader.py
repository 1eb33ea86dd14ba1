"""Tests for shapecli.parser.loader."""

from __future__ import annotations

import io
import json
import textwrap
from pathlib import Path
from unittest.mock import MagicMock, patch

import httpx
import pytest

from shapecli.exceptions import ConfigError, ModelLoadError
from shapecli.parser.loader import (
    _parse_content,
    load_build_config,
    load_model,
    validate_model,
)

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"


# ---------------------------------------------------------------------------
# load_model dispatch
# ---------------------------------------------------------------------------


class TestLoadModel:
    """Test load_model routes to the correct loader."""

    def test_loads_from_file_json(self) -> None:
        result = load_model(str(FIXTURES_DIR / "widget_model.json"))
        assert result["smithy"] == "2.0"
        assert "example.widgets#WidgetService" in result["shapes"]

    def test_loads_from_file_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "model.yaml"
        yaml_file.write_text(
            textwrap.dedent("""\
                smithy: "2.0"
                shapes:
                  example#Thing:
                    type: structure
            """),
            encoding="utf-8",
        )
        result = load_model(str(yaml_file))
        assert result["shapes"]["example#Thing"]["type"] == "structure"

    def test_loads_from_stdin(self) -> None:
        content = json.dumps({"smithy": "2.0", "shapes": {}})
        with patch("shapecli.parser.loader.sys") as mock_sys:
            mock_sys.stdin = io.StringIO(content)
            result = load_model("-")
        assert result == {"smithy": "2.0", "shapes": {}}

    def test_empty_stdin_raises(self) -> None:
        with patch("shapecli.parser.loader.sys") as mock_sys:
            mock_sys.stdin = io.StringIO("   ")
            with pytest.raises(ModelLoadError, match="No input"):
                load_model("-")

    def test_loads_from_url(self) -> None:
        response = MagicMock()
        response.text = json.dumps({"smithy": "2.0", "shapes": {}})
        response.headers = {"content-type": "application/json"}
        with patch("shapecli.parser.loader.httpx.get", return_value=response) as mock_get:
            result = load_model("https://models.example.com/widgets.json")
        mock_get.assert_called_once()
        assert result["smithy"] == "2.0"

    def test_url_request_error_raises(self) -> None:
        with patch(
            "shapecli.parser.loader.httpx.get",
            side_effect=httpx.ConnectError("connection refused"),
        ):
            with pytest.raises(ModelLoadError, match="Failed to fetch"):
                load_model("https://models.example.com/widgets.json")

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ModelLoadError, match="not found"):
            load_model(str(tmp_path / "missing.json"))

    def test_empty_file_raises(self, tmp_path: Path) -> None:
        empty = tmp_path / "empty.json"
        empty.write_text("")
        with pytest.raises(ModelLoadError, match="empty"):
            load_model(str(empty))


class TestParseContent:
    def test_invalid_json_with_json_hint(self) -> None:
        with pytest.raises(ModelLoadError, match="Invalid JSON"):
            _parse_content("{not json", hint="json")

    def test_non_object_rejected(self) -> None:
        with pytest.raises(ModelLoadError, match="must be a JSON/YAML object"):
            _parse_content("[1, 2, 3]")

    def test_yaml_fallback_without_hint(self) -> None:
        assert _parse_content("smithy: '2.0'\nshapes: {}\n") == {"smithy": "2.0", "shapes": {}}


# ---------------------------------------------------------------------------
# validate_model
# ---------------------------------------------------------------------------


class TestValidateModel:
    def test_returns_version(self, widget_model: dict) -> None:
        assert validate_model(widget_model) == "2.0"

    def test_accepts_idl_1(self) -> None:
        assert validate_model({"smithy": "1.0", "shapes": {}}) == "1.0"

    def test_missing_version(self) -> None:
        with pytest.raises(ModelLoadError, match="Missing 'smithy'"):
            validate_model({"shapes": {}})

    def test_unsupported_version(self) -> None:
        with pytest.raises(ModelLoadError, match="Unsupported Smithy version"):
            validate_model({"smithy": "3.0", "shapes": {}})

    def test_missing_shapes(self) -> None:
        with pytest.raises(ModelLoadError, match="no 'shapes'"):
            validate_model({"smithy": "2.0"})


# ---------------------------------------------------------------------------
# load_build_config
# ---------------------------------------------------------------------------


class TestLoadBuildConfig:
    def test_reads_module_and_version(self) -> None:
        client = load_build_config(str(FIXTURES_DIR / "smithy-build.json"), "python-client-codegen")
        assert client.module == "widget_client"
        assert client.version == "0.3.0"
        assert client.dependency() == "widget-client==0.3.0"

    def test_package_fallback(self, tmp_path: Path) -> None:
        path = tmp_path / "smithy-build.json"
        path.write_text(json.dumps({
            "plugins": {"codegen": {"package": "widgets", "packageVersion": "1.2.3"}},
        }))
        client = load_build_config(str(path), "codegen")
        assert (client.module, client.version) == ("widgets", "1.2.3")

    def test_unknown_plugin(self) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_build_config(str(FIXTURES_DIR / "smithy-build.json"), "typescript-codegen")

    def test_missing_version(self, tmp_path: Path) -> None:
        path = tmp_path / "smithy-build.json"
        path.write_text(json.dumps({"plugins": {"codegen": {"module": "widgets"}}}))
        with pytest.raises(ConfigError, match="moduleVersion"):
            load_build_config(str(path), "codegen")
