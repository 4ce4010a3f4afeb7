# src/dbbridge/database/connection.py
"""Connection parameter resolution and per-role handle lifecycle."""

from typing import Any, Dict, Mapping, Optional, Tuple, Union

from dbbridge.config.models import DbBridgeConfig, ServerConfig
from dbbridge.core import BaseComponent
from dbbridge.core.exceptions import DatabaseConnectionError, ErrorCodes
from dbbridge.logging import get_logger

from .drivers.base import DatabaseDriver
from .models import ConnectionParams, ConnectionRole
from .versions import CR_CONN_HOST_ERROR, CR_CONNECTION_ERROR, format_error

ResolvedParams = Tuple[Optional[str], Optional[str], Optional[ConnectionParams]]


class ConnectionManager(BaseComponent[DbBridgeConfig]):
    """Resolves connection parameters and owns one driver handle per role.

    PRIMARY is the user's own connection. CONTROL is an optional second
    connection with separate credentials; when it is not configured every
    CONTROL request is served by the PRIMARY handle.
    """

    component_name = "ConnectionManager"
    version = "1.0.0"

    def __init__(self, driver: DatabaseDriver, config: DbBridgeConfig) -> None:
        super().__init__(config)
        self.driver = driver
        self.logger = get_logger("database.connection")
        self._handles: Dict[ConnectionRole, Any] = {}

    def _server(self, server: Union[None, ServerConfig, Mapping[str, Any]]) -> ServerConfig:
        if server is None:
            return self.config.server
        if isinstance(server, ServerConfig):
            return server
        return ServerConfig.model_validate(dict(server))

    @staticmethod
    def _ssl_options(server: ServerConfig) -> Dict[str, Any]:
        options: Dict[str, Any] = {}
        for key, value in (
            ("key", server.ssl_key),
            ("cert", server.ssl_cert),
            ("ca", server.ssl_ca),
            ("capath", server.ssl_ca_path),
            ("cipher", server.ssl_ciphers),
        ):
            if value:
                options[key] = value
        if not server.ssl_verify:
            options["verify"] = False
        return options

    def resolve_connection_params(
        self,
        role: ConnectionRole,
        server: Union[None, ServerConfig, Mapping[str, Any]] = None,
    ) -> ResolvedParams:
        """Resolve ``(user, password, params)`` for ``role``.

        Args:
            role: Connection role to resolve
            server: Explicit server settings (ServerConfig or raw mapping);
                the active server settings when omitted

        Returns:
            The credentials and parameter set, or ``(None, None, None)``
            when the role has no user configured
        """
        server = self._server(server)

        if role is ConnectionRole.PRIMARY:
            if not server.user:
                return None, None, None
            password = server.secret("password") or ""
            params = ConnectionParams(
                host=server.host or "localhost",
                socket=server.socket,
                port=server.port,
                ssl=server.ssl,
                compress=server.compress,
                ssl_options=self._ssl_options(server),
                user=server.user,
                password=password,
                controluser=server.controluser,
                controlpass=server.secret("controlpass"),
                control_ssl=server.control_ssl,
            )
            return server.user, password, params

        if not server.controluser:
            return None, None, None

        host = server.controlhost or server.host
        # shape settings only carry over to a control connection on the same host
        shared = host == server.host
        port = server.port if shared else 0
        socket = server.socket if shared else None
        ssl = server.ssl if shared else False
        compress = server.compress if shared else False
        ssl_options = self._ssl_options(server) if shared else {}

        if server.controlport:
            port = server.controlport
        if server.control_ssl is not None:
            ssl = server.control_ssl
        if server.control_socket is not None:
            socket = server.control_socket
        if server.control_compress is not None:
            compress = server.control_compress

        params = ConnectionParams(
            host=host or "localhost",
            socket=socket,
            port=port,
            ssl=ssl,
            compress=compress,
            ssl_options=ssl_options,
        )
        return server.controluser, server.secret("controlpass") or "", params

    def is_configured(self, role: ConnectionRole) -> bool:
        """Whether credentials exist for ``role``."""
        if role is ConnectionRole.PRIMARY:
            return bool(self.config.server.user)
        return bool(self.config.server.controluser)

    def is_connected(self, role: ConnectionRole) -> bool:
        return role in self._handles

    def connect(self, role: ConnectionRole = ConnectionRole.PRIMARY) -> Any:
        """Open the connection for ``role`` and keep its handle.

        Raises:
            DatabaseConnectionError: If credentials are missing or the driver
                cannot connect; the message is the classified server error
        """
        user, password, params = self.resolve_connection_params(role)
        if params is None:
            raise DatabaseConnectionError(
                f"No credentials configured for the {role.value} connection",
                code=ErrorCodes.CREDENTIALS_MISSING,
                context={"role": role.value},
            )

        handle = self.driver.connect(user, password or "", params)
        if handle is None:
            errno, message = self.driver.last_error(None)
            self.logger.error(
                "Connection failed",
                role=role.value,
                host=params.host,
                port=params.port,
                errno=errno,
            )
            raise DatabaseConnectionError(
                format_error(errno, message),
                code=(
                    ErrorCodes.CONNECTION_REFUSED
                    if errno in (CR_CONNECTION_ERROR, CR_CONN_HOST_ERROR)
                    else ErrorCodes.CONNECTION_FAILED
                ),
                context={
                    "role": role.value,
                    "host": params.host,
                    "port": params.port,
                    "errno": errno,
                },
            )

        self._handles[role] = handle
        self._initialized = True
        self.logger.info(
            "Connection established",
            role=role.value,
            host=params.host,
            port=params.port,
            socket=params.socket,
            ssl=params.ssl,
        )
        return handle

    def get_handle(self, role: ConnectionRole = ConnectionRole.PRIMARY) -> Any:
        """Return the live handle for ``role``.

        Raises:
            DatabaseConnectionError: If the role has not been connected
        """
        if role in self._handles:
            return self._handles[role]
        if role is ConnectionRole.CONTROL and not self.is_configured(role):
            return self.get_handle(ConnectionRole.PRIMARY)
        raise DatabaseConnectionError(
            f"The {role.value} connection is not established",
            code=ErrorCodes.NOT_CONNECTED,
            context={"role": role.value},
        )

    def reconnect(self, role: ConnectionRole = ConnectionRole.PRIMARY) -> Any:
        """Close and recreate the handle for ``role``."""
        self.close(role)
        return self.connect(role)

    def close(self, role: Optional[ConnectionRole] = None) -> None:
        """Close one role's handle, or every handle when ``role`` is None."""
        roles = [role] if role is not None else list(self._handles)
        for current in roles:
            handle = self._handles.pop(current, None)
            if handle is None:
                continue
            self.driver.close(handle)
            self.logger.info("Connection closed", role=current.value)
        if not self._handles:
            self._initialized = False

    def get_health_status(self) -> Dict[str, Any]:
        status = super().get_health_status()
        status["driver"] = self.driver.driver_name
        status["connected_roles"] = [role.value for role in self._handles]
        return status
