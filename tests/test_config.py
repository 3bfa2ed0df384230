"""Tests for settings validation."""

import pytest
from pydantic import ValidationError

from indexer.config import Settings


class TestSearchQueueSettings:
    """Queue processing settings must allow progress."""

    def test_defaults(self):
        config = Settings()

        assert config.search_update_interval == 5.0
        assert config.search_queue_chunk_size == 5000

    @pytest.mark.parametrize("chunk_size", [0, -1])
    def test_chunk_size_must_be_positive(self, chunk_size):
        with pytest.raises(ValidationError, match="search_queue_chunk_size"):
            Settings(search_queue_chunk_size=chunk_size)

    def test_negative_interval_is_rejected(self):
        with pytest.raises(ValidationError, match="search_update_interval"):
            Settings(search_update_interval=-1)

    def test_zero_interval_is_allowed(self):
        assert Settings(search_update_interval=0).search_update_interval == 0
