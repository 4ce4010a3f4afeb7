"""Tests for connection parameter resolution and handle lifecycle."""

import pytest

from dbbridge.config.models import DbBridgeConfig, ServerConfig
from dbbridge.core.exceptions import DatabaseConnectionError, ErrorCodes
from dbbridge.database import ConnectionManager, ConnectionRole, DummyDriver
from dbbridge.database.versions import SOCKET_NOT_CONFIGURED

PRIMARY = ConnectionRole.PRIMARY
CONTROL = ConnectionRole.CONTROL


@pytest.fixture
def manager(dummy_driver, bridge_config):
    """Connection manager over the dummy driver."""
    return ConnectionManager(dummy_driver, bridge_config)


class TestResolveConnectionParams:
    """Test per-role parameter resolution."""

    @pytest.mark.parametrize("ssl", [True, False])
    @pytest.mark.parametrize("control_ssl", [True, False, None])
    def test_ssl_combinations(self, manager, ssl, control_ssl):
        """Test PRIMARY takes ssl directly and CONTROL prefers control_ssl."""
        server = {
            "user": "u",
            "password": "pass",
            "host": "",
            "controluser": "u2",
            "controlpass": "p2",
            "ssl": ssl,
            "control_ssl": control_ssl,
        }

        _, _, primary = manager.resolve_connection_params(PRIMARY, server)
        _, _, control = manager.resolve_connection_params(CONTROL, server)

        assert primary.ssl is ssl
        assert control.ssl is (control_ssl if control_ssl is not None else ssl)

    def test_primary_params(self, manager):
        """Test PRIMARY carries credentials and the control credentials."""
        user, password, params = manager.resolve_connection_params(
            PRIMARY,
            {
                "user": "u",
                "password": "pass",
                "host": "",
                "controluser": "u2",
                "controlpass": "p2",
                "ssl": True,
                "control_ssl": True,
            },
        )

        assert (user, password) == ("u", "pass")
        assert params.as_dict() == {
            "user": "u",
            "password": "pass",
            "host": "localhost",
            "socket": None,
            "port": 0,
            "ssl": True,
            "compress": False,
            "controluser": "u2",
            "controlpass": "p2",
            "control_ssl": True,
        }

    def test_control_params_carry_shape_only(self, manager):
        """Test CONTROL never carries credential fields."""
        user, password, params = manager.resolve_connection_params(
            CONTROL,
            {
                "user": "u",
                "password": "pass",
                "host": "",
                "controluser": "u2",
                "controlpass": "p2",
                "ssl": True,
                "control_ssl": True,
            },
        )

        assert (user, password) == ("u2", "p2")
        assert params.as_dict() == {
            "host": "localhost",
            "socket": None,
            "port": 0,
            "ssl": True,
            "compress": False,
        }

    def test_socket_passed_through(self, manager):
        """Test socket and host are both carried."""
        _, _, params = manager.resolve_connection_params(
            PRIMARY, {"user": "u", "host": "db", "socket": "/run/mysqld/mysqld.sock"}
        )

        assert params.host == "db"
        assert params.socket == "/run/mysqld/mysqld.sock"
        assert params.password == ""

    def test_missing_primary_user(self, manager):
        """Test missing credentials resolve to an empty triple."""
        assert manager.resolve_connection_params(PRIMARY, {"host": "db"}) == (None, None, None)

    def test_missing_control_user(self, manager):
        """Test an unconfigured control role resolves to an empty triple."""
        assert manager.resolve_connection_params(CONTROL, {"user": "u"}) == (None, None, None)

    def test_control_host_and_port(self, manager):
        """Test controlhost and controlport override the primary shape."""
        _, _, params = manager.resolve_connection_params(
            CONTROL,
            ServerConfig(
                user="u",
                host="db",
                port=3307,
                socket="/tmp/mysql.sock",
                ssl=True,
                controluser="u2",
                controlhost="ctl",
                controlport=3310,
            ),
        )

        assert params.host == "ctl"
        assert params.port == 3310
        assert params.socket is None
        assert params.ssl is False

    def test_control_on_same_host_shares_shape(self, manager):
        """Test the control role inherits port and socket on the same host."""
        _, _, params = manager.resolve_connection_params(
            CONTROL,
            ServerConfig(user="u", host="db", port=3307, socket="/tmp/mysql.sock", controluser="u2"),
        )

        assert params.host == "db"
        assert params.port == 3307
        assert params.socket == "/tmp/mysql.sock"

    def test_ssl_options(self, manager):
        """Test SSL file settings travel in ssl_options."""
        _, _, params = manager.resolve_connection_params(
            PRIMARY,
            ServerConfig(user="u", ssl=True, ssl_ca="/ca.pem", ssl_verify=False),
        )

        assert params.ssl_options == {"ca": "/ca.pem", "verify": False}

    def test_defaults_to_active_server(self, manager):
        """Test the configured server is used when none is passed."""
        user, password, params = manager.resolve_connection_params(PRIMARY)

        assert (user, password) == ("pma_test", "secret")
        assert params.host == "localhost"


class TestConnectionLifecycle:
    """Test connecting, handle lookup and closing."""

    def test_connect_primary(self, manager, dummy_driver):
        """Test a successful connect stores the handle."""
        handle = manager.connect(PRIMARY)

        assert manager.is_connected(PRIMARY)
        assert manager.get_handle(PRIMARY) is handle
        assert dummy_driver.connections[0].user == "pma_test"

    def test_roles_are_independent(self, manager):
        """Test PRIMARY and CONTROL get separate handles."""
        primary = manager.connect(PRIMARY)
        control = manager.connect(CONTROL)

        assert primary is not control
        assert control.user == "pma_control"
        assert manager.get_health_status()["connected_roles"] == ["primary", "control"]

    def test_control_falls_back_to_primary(self, dummy_driver):
        """Test CONTROL uses the PRIMARY handle when not configured."""
        manager = ConnectionManager(
            dummy_driver, DbBridgeConfig.from_mapping({"Server": {"user": "u"}})
        )
        handle = manager.connect(PRIMARY)

        assert manager.get_handle(CONTROL) is handle

    def test_not_connected(self, manager):
        """Test asking for an unopened handle raises."""
        with pytest.raises(DatabaseConnectionError) as exc_info:
            manager.get_handle(PRIMARY)

        assert exc_info.value.code == ErrorCodes.NOT_CONNECTED

    def test_missing_credentials(self, dummy_driver):
        """Test connecting without a user raises CREDENTIALS_MISSING."""
        manager = ConnectionManager(dummy_driver, DbBridgeConfig())

        with pytest.raises(DatabaseConnectionError) as exc_info:
            manager.connect(PRIMARY)

        assert exc_info.value.code == ErrorCodes.CREDENTIALS_MISSING
        assert dummy_driver.connections == []

    def test_connection_refused(self, bridge_config):
        """Test socket failures surface the classified message."""
        driver = DummyDriver(connect_error=(2002, "No such file or directory"))
        manager = ConnectionManager(driver, bridge_config)

        with pytest.raises(DatabaseConnectionError) as exc_info:
            manager.connect(PRIMARY)

        assert exc_info.value.code == ErrorCodes.CONNECTION_REFUSED
        assert SOCKET_NOT_CONFIGURED in exc_info.value.message
        assert exc_info.value.context["errno"] == 2002
        assert not manager.is_connected(PRIMARY)

    def test_connection_failed(self, bridge_config):
        """Test other failures use CONNECTION_FAILED."""
        driver = DummyDriver(connect_error=(1045, "Access denied for user 'pma_test'@'localhost'"))
        manager = ConnectionManager(driver, bridge_config)

        with pytest.raises(DatabaseConnectionError) as exc_info:
            manager.connect(PRIMARY)

        assert exc_info.value.code == ErrorCodes.CONNECTION_FAILED
        assert exc_info.value.message.startswith("#1045 - Access denied")

    def test_reconnect(self, manager, dummy_driver):
        """Test reconnect closes and replaces the handle."""
        first = manager.connect(PRIMARY)
        second = manager.reconnect(PRIMARY)

        assert first.closed
        assert second is not first
        assert manager.get_handle(PRIMARY) is second

    def test_close_all(self, manager):
        """Test closing every role."""
        primary = manager.connect(PRIMARY)
        control = manager.connect(CONTROL)

        manager.close()
        manager.close()

        assert primary.closed and control.closed
        assert not manager.is_connected(PRIMARY)
        assert not manager.is_initialized
