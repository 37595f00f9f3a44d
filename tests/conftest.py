import os
import sys
from pathlib import Path

import pytest

os.environ.setdefault("APICLIENT_LOG_TO_CONSOLE", "false")


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


from api_client import logging_setup  # noqa: E402
from api_client.infrastructure.config_locator import CONFIG_PATH_ENV_VAR, reset_config_path_cache  # noqa: E402
from api_client.infrastructure.credential_store import reset_credential_store  # noqa: E402


SAMPLE_CONFIG = """<?xml version="1.0" encoding="utf-8"?>
<configuration>
  <!-- API client credentials -->
  <add key="ApiClient.ClientId" value="client-123" />
  <add key="ApiClient.ClientSecret" value="secret-456" />
  <add key="ApiClient.RedirectUri" value="https://localhost:44300/callback" />
  <add key="ApiClient.AccessToken" value="" />
  <add key="ApiClient.RefreshToken" value="" />
  <add key="ApiClient.ExpirationDateTime" value="" />
  <add key="Vendor.Sandbox" value="true" note="keep me" />
  <logging level="debug" />
</configuration>
"""


@pytest.fixture(autouse=True)
def _isolated_logging(tmp_path):
    logging_setup.configure_logging(log_path=tmp_path / "logs" / "apiclient.log", force=True)
    try:
        yield
    finally:
        logging_setup.reset_logging()


@pytest.fixture(autouse=True)
def _reset_singletons(monkeypatch):
    monkeypatch.delenv(CONFIG_PATH_ENV_VAR, raising=False)
    reset_config_path_cache()
    reset_credential_store()
    try:
        yield
    finally:
        reset_config_path_cache()
        reset_credential_store()


@pytest.fixture
def config_file(tmp_path) -> Path:
    path = tmp_path / "solution" / "apiclient.config"
    path.parent.mkdir(parents=True)
    path.write_text(SAMPLE_CONFIG, encoding="utf-8")
    return path


@pytest.fixture
def sample_config_text() -> str:
    return SAMPLE_CONFIG
