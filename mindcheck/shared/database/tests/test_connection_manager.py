"""Tests for database connection manager."""
import json
from unittest.mock import MagicMock, patch

import pytest

from mindcheck.shared.utils import configure_pii_salt
from mindcheck.shared.database.connection import ConnectionManager, DatabaseConfig


@pytest.fixture(autouse=True)
def setup_pii_salt():
    configure_pii_salt("test_salt_that_is_at_least_32_characters_long")


class TestDatabaseConfig:
    """Tests for DatabaseConfig dataclass."""

    def test_default_values(self):
        config = DatabaseConfig(host="localhost")

        assert config.port == 5432
        assert config.database == "mindcheck"
        assert config.min_connections == 2
        assert config.max_connections == 10
        assert config.ssl_mode == "require"

    def test_from_env(self):
        with patch.dict("os.environ", {
            "DB_HOST": "env-host",
            "DB_PORT": "5434",
            "DB_NAME": "env_db",
            "DB_USER": "env_user",
            "DB_PASSWORD": "env_pass",
        }):
            config = DatabaseConfig.from_env()

        assert config.host == "env-host"
        assert config.port == 5434
        assert config.database == "env_db"
        assert config.username == "env_user"

    def test_from_env_defaults(self):
        with patch.dict("os.environ", {}, clear=True):
            config = DatabaseConfig.from_env()

        assert config.host == "localhost"
        assert config.database == "mindcheck"

    @patch("boto3.client")
    def test_from_secrets_manager(self, mock_client):
        mock_client.return_value.get_secret_value.return_value = {
            "SecretString": json.dumps({
                "host": "db.internal",
                "port": 5433,
                "dbname": "checkins",
                "username": "svc",
                "password": "secret",
            })
        }

        config = DatabaseConfig.from_secrets_manager("arn:aws:secretsmanager:x")

        assert config.host == "db.internal"
        assert config.port == 5433
        assert config.username == "svc"
        mock_client.assert_called_once_with("secretsmanager", region_name="us-east-1")

    @patch("boto3.client")
    def test_from_secrets_manager_failure(self, mock_client):
        mock_client.return_value.get_secret_value.side_effect = Exception("AccessDenied")

        with pytest.raises(Exception, match="AccessDenied"):
            DatabaseConfig.from_secrets_manager("arn:aws:secretsmanager:x")


class TestConnectionManager:
    """Tests for ConnectionManager class."""

    @pytest.fixture
    def manager(self):
        return ConnectionManager(DatabaseConfig(host="localhost"))

    def test_initialization_is_lazy(self, manager):
        assert manager.initialized is False

    @patch("mindcheck.shared.database.connection.pool.ThreadedConnectionPool")
    def test_initialize_creates_pool_once(self, mock_pool, manager):
        manager.initialize()
        manager.initialize()

        mock_pool.assert_called_once()
        assert mock_pool.call_args[1]["database"] == "mindcheck"
        assert manager.initialized is True

    @patch("mindcheck.shared.database.connection.pool.ThreadedConnectionPool")
    def test_get_connection_returns_to_pool(self, mock_pool, manager):
        conn = MagicMock()
        mock_pool.return_value.getconn.return_value = conn

        with manager.get_connection() as c:
            assert c is conn

        mock_pool.return_value.putconn.assert_called_once_with(conn)
        conn.rollback.assert_not_called()

    @patch("mindcheck.shared.database.connection.pool.ThreadedConnectionPool")
    def test_get_connection_rolls_back_on_error(self, mock_pool, manager):
        conn = MagicMock()
        mock_pool.return_value.getconn.return_value = conn

        with pytest.raises(RuntimeError):
            with manager.get_connection():
                raise RuntimeError("statement failed")

        conn.rollback.assert_called_once()
        mock_pool.return_value.putconn.assert_called_once_with(conn)

    def test_health_check_not_initialized(self, manager):
        health = manager.health_check()

        assert health["status"] == "not_initialized"
        assert health["healthy"] is False

    @patch("mindcheck.shared.database.connection.pool.ThreadedConnectionPool")
    def test_health_check_connected(self, mock_pool, manager):
        manager.initialize()

        health = manager.health_check()

        assert health["healthy"] is True
        assert health["status"] == "connected"

    @patch("mindcheck.shared.database.connection.pool.ThreadedConnectionPool")
    def test_health_check_error(self, mock_pool, manager):
        mock_pool.return_value.getconn.side_effect = Exception("connection refused")
        manager.initialize()

        health = manager.health_check()

        assert health["healthy"] is False
        assert "connection refused" in health["error"]

    @patch("mindcheck.shared.database.connection.pool.ThreadedConnectionPool")
    def test_close(self, mock_pool, manager):
        manager.initialize()

        manager.close()

        mock_pool.return_value.closeall.assert_called_once()
        assert manager.initialized is False
