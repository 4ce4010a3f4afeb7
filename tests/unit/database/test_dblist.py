"""Tests for the visible database list."""

from dbbridge.config.models import ServerConfig
from dbbridge.database import DatabaseList

SERVER_DATABASES = ["information_schema", "mysql", "pma_test", "pma_other", "test", "test_2"]


class TestDatabaseList:
    """Test only_db and hide_db filtering."""

    def test_everything_visible_by_default(self):
        """Test no patterns keep server order."""
        assert DatabaseList(SERVER_DATABASES).names == SERVER_DATABASES

    def test_wildcard_only_db(self):
        """Test a * entry shows every database."""
        assert DatabaseList(SERVER_DATABASES, only_db=["*"]).names == SERVER_DATABASES

    def test_only_db_pattern_order(self):
        """Test databases follow the only_db pattern order."""
        database_list = DatabaseList(SERVER_DATABASES, only_db=["test%", "pma\\_%"])

        assert database_list.names == ["test", "test_2", "pma_test", "pma_other"]

    def test_only_db_no_duplicates(self):
        """Test overlapping patterns list a database once."""
        database_list = DatabaseList(SERVER_DATABASES, only_db=["pma%", "pma_test"])

        assert database_list.names == ["pma_test", "pma_other"]

    def test_hide_db(self):
        """Test hide_db removes matching names."""
        database_list = DatabaseList(SERVER_DATABASES, hide_db="^(information_schema|mysql)$")

        assert "mysql" not in database_list
        assert database_list.names == ["pma_test", "pma_other", "test", "test_2"]

    def test_exists(self):
        """Test membership checks."""
        database_list = DatabaseList(SERVER_DATABASES, only_db=["test"])

        assert database_list.exists("test")
        assert not database_list.exists("test", "mysql")
        assert len(database_list) == 1
        assert list(database_list) == ["test"]

    def test_from_server(self, dbi):
        """Test reading SHOW DATABASES through an executor."""
        database_list = DatabaseList.from_server(
            dbi.executor, ServerConfig(user="pma_test", only_db="pma\\_%")
        )

        assert database_list.names == ["pma_test"]
