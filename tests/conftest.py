import pytest

from fakes import FakeRpcProvider


@pytest.fixture
def fake_provider() -> FakeRpcProvider:
    """Provider over 600 non-uniform blocks that rejects every signature."""
    return FakeRpcProvider()
