from __future__ import annotations

import django
import pytest

from featureserver import conf
from featureserver.normalizer import RequestNormalizer
from tests.test_featureserver.repository import MemoryRepository


def pytest_configure():
    print(f"Running with Django {django.__version__}")
    print(f"Using FEATURESERVER_STRICT_BBOX={conf.FEATURESERVER_STRICT_BBOX}")


@pytest.fixture()
def repository() -> MemoryRepository:
    return MemoryRepository()


@pytest.fixture()
def normalizer(repository) -> RequestNormalizer:
    return RequestNormalizer(repository)
