"""Mock implementations for testing."""

from tests.mocks.exchange import (
    HEALTHY,
    FakeCcxtClient,
    FakeGateway,
    make_book,
    make_levels,
    make_snapshot,
)


__all__ = [
    "HEALTHY",
    "FakeCcxtClient",
    "FakeGateway",
    "make_book",
    "make_levels",
    "make_snapshot",
]
