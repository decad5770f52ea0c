from __future__ import annotations

import pytest

from enrichrun.config.backend import BackendConfig, build_backend_config

API_URL = "https://admin.example.test/api"


@pytest.fixture
def backend_config() -> BackendConfig:
    return build_backend_config(API_URL, api_token="secret")
