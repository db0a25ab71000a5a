"""Unit tests for Firebase project id resolution."""

import base64
import json

import pytest

from core.exceptions import ConfigurationError
from infrastructure.auth.credentials import resolve_firebase_project_id
from tests.conftest import make_settings

ACCOUNT = {"type": "service_account", "project_id": "from-account"}


@pytest.fixture
def settings_for(tmp_path):
    def build(**overrides):
        values = {"firebase_project_id": ""}
        values.update(overrides)
        return make_settings(tmp_path / "c.db", **values)

    return build


class TestResolveFirebaseProjectId:
    def test_base64_service_account(self, settings_for):
        encoded = base64.b64encode(json.dumps(ACCOUNT).encode()).decode()

        settings = settings_for(firebase_service_account_base64=encoded)

        assert resolve_firebase_project_id(settings) == "from-account"

    def test_inline_json_service_account(self, settings_for):
        settings = settings_for(firebase_service_account_json=json.dumps(ACCOUNT))

        assert resolve_firebase_project_id(settings) == "from-account"

    def test_base64_takes_precedence(self, settings_for):
        encoded = base64.b64encode(json.dumps(ACCOUNT).encode()).decode()
        settings = settings_for(
            firebase_service_account_base64=encoded,
            firebase_service_account_json=json.dumps({"project_id": "inline"}),
            firebase_project_id="plain",
        )

        assert resolve_firebase_project_id(settings) == "from-account"

    def test_plain_project_id(self, settings_for):
        assert resolve_firebase_project_id(settings_for(firebase_project_id=" plain ")) == "plain"

    def test_nothing_configured(self, settings_for):
        assert resolve_firebase_project_id(settings_for()) == ""

    def test_invalid_base64(self, settings_for):
        with pytest.raises(ConfigurationError, match="base64"):
            resolve_firebase_project_id(settings_for(firebase_service_account_base64="@@@"))

    def test_invalid_json(self, settings_for):
        with pytest.raises(ConfigurationError, match="not valid JSON"):
            resolve_firebase_project_id(settings_for(firebase_service_account_json="{oops"))

    def test_json_without_project_id(self, settings_for):
        with pytest.raises(ConfigurationError, match="no project_id"):
            resolve_firebase_project_id(
                settings_for(firebase_service_account_json=json.dumps({"type": "x"}))
            )
