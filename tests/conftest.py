import uuid

import pytest


@pytest.fixture
def store_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def product_id() -> uuid.UUID:
    return uuid.uuid4()
