"""Unit tests for Settings and logging configuration."""

import json
import logging
import sys

import pytest
from pydantic import ValidationError

from ragengine.config.logging import JSONExceptionFormatter, get_logger, setup_logging
from ragengine.core.domain.exceptions import IndexTimeoutError
from ragengine.core.services.chunker import SEMANTIC_SEPARATORS

pytestmark = pytest.mark.unit


class TestSettings:
    def test_defaults(self, make_settings):
        settings = make_settings()

        assert settings.chunk_size == 1000
        assert settings.chunk_overlap == 200
        assert settings.similarity_threshold == 0.7
        assert settings.embedding_dimension == 384
        assert settings.index_poll_interval == 2.0
        assert settings.index_poll_attempts == 30
        assert settings.ocr_enabled is True

    def test_environment_overrides(self, make_settings, monkeypatch):
        monkeypatch.setenv("CHUNK_SIZE", "500")
        monkeypatch.setenv("CHUNK_OVERLAP", "50")
        monkeypatch.setenv("OCR_ENABLED", "false")
        monkeypatch.setenv("VECTOR_BACKEND", "memory")

        settings = make_settings()

        assert settings.chunk_size == 500
        assert settings.ocr_enabled is False
        assert settings.vector_backend == "memory"

    def test_secrets_sanitized(self, make_settings):
        settings = make_settings(qdrant_api_key="\ufeffsecret-key \n", qdrant_url=" https://q.example.com ")
        assert settings.qdrant_api_key == "secret-key"
        assert settings.qdrant_url == "https://q.example.com"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"chunk_size": 100, "chunk_overlap": 100},
            {"semantic_chunk_size": 400, "semantic_chunk_overlap": 500},
            {"similarity_threshold": 1.5},
            {"index_poll_attempts": 0},
            {"vector_backend": "chroma"},
        ],
    )
    def test_invalid_values_rejected(self, make_settings, overrides):
        with pytest.raises(ValidationError):
            make_settings(**overrides)

    def test_derived_configs(self, make_settings):
        settings = make_settings(chunk_size=800, chunk_overlap=100, embedding_dimension=768)

        assert settings.chunking().chunk_size == 800
        assert settings.semantic_chunking().separators == SEMANTIC_SEPARATORS
        spec = settings.index_spec()
        assert spec.dimension == 768
        assert spec.name == "embedding"

    def test_ensure_directories(self, make_settings, tmp_path):
        settings = make_settings(
            registry_path=tmp_path / "reg" / "registry.db", qdrant_path=tmp_path / "qdrant"
        )
        settings.ensure_directories()

        assert (tmp_path / "reg").is_dir()
        assert (tmp_path / "qdrant").is_dir()


class TestLogging:
    def test_setup_logging_configures_root_logger(self, tmp_path):
        log_file = tmp_path / "logs" / "engine.log"
        logger = setup_logging("DEBUG", log_file)

        assert logger.name == "ragengine"
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 2
        assert log_file.parent.is_dir()
        logger.handlers.clear()

    def test_setup_logging_is_repeatable(self):
        setup_logging()
        logger = setup_logging()
        assert len(logger.handlers) == 1
        logger.handlers.clear()

    def test_get_logger(self):
        assert get_logger("ingest").name == "ragengine.ingest"
        assert get_logger().name == "ragengine"

    def test_json_formatter_includes_error_code(self):
        try:
            raise IndexTimeoutError("Index not ready")
        except IndexTimeoutError:
            record = logging.LogRecord(
                "ragengine", logging.ERROR, __file__, 1, "bootstrap failed", None, sys.exc_info()
            )

        entry = json.loads(JSONExceptionFormatter().format(record))

        assert entry["level"] == "ERROR"
        assert entry["message"] == "bootstrap failed"
        assert entry["exception"]["type"] == "IndexTimeoutError"
        assert entry["exception"]["code"] == IndexTimeoutError.error_code
