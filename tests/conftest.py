"""Shared test fixtures."""

import pytest


@pytest.fixture
def sink():
    """Capturing log sink: records (source, level, message) triples."""

    class FakeSink:
        def __init__(self):
            self.records = []

        def log(self, source, level, message):
            self.records.append((source, level, message))

        def messages(self, level):
            return [m for _, lvl, m in self.records if lvl == level]

    return FakeSink()
