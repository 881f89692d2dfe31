import os

# 애플리케이션 모듈 import 전에 테스트용 인메모리 DB를 지정합니다.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("DASHBOARD_TIMEZONE", "Asia/Taipei")

import pytest

from tests.fakes import FakeCatalog, FakeReports, InMemoryStore


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture
def reports():
    return FakeReports()
