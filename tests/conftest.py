from __future__ import annotations

from typing import List, Optional

import pytest

from deal_analyzer.clients.rentcast import CallCounter, RentCastClient
from deal_analyzer.config import ApiConfig, AppConfig, FilterConfig

from fakes import FakeSession


@pytest.fixture
def sleeps() -> List[float]:
    return []


@pytest.fixture
def make_client(sleeps):
    def _make(session: FakeSession, api: Optional[ApiConfig] = None, filters: Optional[FilterConfig] = None) -> RentCastClient:
        return RentCastClient(
            "test-key",
            api or ApiConfig(base_url="https://rentcast.test/v1/", request_delay_ms=250),
            filters or FilterConfig(),
            counter=CallCounter(),
            session=session,
            sleep=sleeps.append,
        )

    return _make


@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    config = AppConfig()
    return config.model_copy(update={"output": config.output.model_copy(update={"directory": tmp_path / "data"})})
