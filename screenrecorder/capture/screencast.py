"""GNOME Shell screencast D-Bus client."""

import logging
from typing import TYPE_CHECKING, Any

from jeepney import DBusErrorResponse, MessageGenerator, new_method_call
from jeepney.io.threading import DBusRouter, Proxy, open_dbus_router

from screenrecorder.errors import IPCError

if TYPE_CHECKING:
    from screenrecorder.config.settings import ScreencastSettings

logger = logging.getLogger(__name__)

SCREENCAST_BUS_NAME = "org.gnome.Shell.Screencast"
SCREENCAST_OBJECT_PATH = "/org/gnome/Shell/Screencast"


class GnomeScreencast(MessageGenerator):
    """Message generator for the org.gnome.Shell.Screencast interface."""

    interface = "org.gnome.Shell.Screencast"

    def __init__(
        self,
        object_path: str = SCREENCAST_OBJECT_PATH,
        bus_name: str = SCREENCAST_BUS_NAME,
    ):
        super().__init__(object_path=object_path, bus_name=bus_name)

    def screencast(self, file_template: str, options: dict[str, tuple[str, Any]]):
        return new_method_call(self, "Screencast", "sa{sv}", (file_template, options))

    def screencast_area(
        self,
        x: int,
        y: int,
        width: int,
        height: int,
        file_template: str,
        options: dict[str, tuple[str, Any]],
    ):
        return new_method_call(
            self,
            "ScreencastArea",
            "iiiisa{sv}",
            (x, y, width, height, file_template, options),
        )

    def stop_screencast(self):
        return new_method_call(self, "StopScreencast")


class GnomeScreencastClient:
    """Session-bus client exposing the three screencast operations.

    One client is used per capture. The router is thread-safe, so the capture
    worker can block in ScreencastArea while the control thread sends
    StopScreencast over the same connection (the compositor only accepts the
    stop request from the connection that started the capture).
    """

    def __init__(self, settings: "ScreencastSettings", bus: str = "SESSION"):
        self.settings = settings
        self.bus = bus
        self._router: DBusRouter | None = None
        self._proxy: Proxy | None = None

    @property
    def is_connected(self) -> bool:
        """Check if the bus connection is open."""
        return self._router is not None

    def connect(self) -> None:
        """Open the session bus connection.

        Raises:
            IPCError: If the bus is unreachable
        """
        if self._router is not None:
            return
        try:
            self._router = open_dbus_router(bus=self.bus)
        except Exception as e:
            raise IPCError(f"Could not connect to the {self.bus.lower()} bus: {e}") from e
        self._proxy = Proxy(GnomeScreencast(), self._router)
        logger.debug("Connected to GNOME Shell screencast service")

    def build_options(self, frame_rate: float, draw_cursor: bool) -> dict[str, tuple[str, Any]]:
        """Options dictionary (a{sv}) for Screencast and ScreencastArea."""
        return {
            "framerate": ("i", int(round(frame_rate))),
            "draw-cursor": ("b", draw_cursor),
            "pipeline": ("s", self.settings.pipeline),
        }

    def _call(self, method: str, *args: Any) -> tuple:
        if self._proxy is None:
            self.connect()
        try:
            return getattr(self._proxy, method)(*args)
        except DBusErrorResponse as e:
            raise IPCError(f"Screencast {method} failed: {e.name}: {e.data}") from e
        except Exception as e:
            raise IPCError(f"Screencast {method} failed: {e}") from e

    def screencast(
        self, file_template: str, options: dict[str, tuple[str, Any]]
    ) -> tuple[bool, str]:
        """Record the whole screen.

        Returns:
            (success, output path used by the compositor)
        """
        logger.info(f"Starting full screen screencast: {file_template}")
        success, output_path = self._call("screencast", file_template, options)
        return bool(success), str(output_path)

    def screencast_area(
        self,
        x: int,
        y: int,
        width: int,
        height: int,
        file_template: str,
        options: dict[str, tuple[str, Any]],
    ) -> tuple[bool, str]:
        """Record a rectangle of the screen.

        Returns:
            (success, output path used by the compositor)
        """
        logger.info(f"Starting screencast of {width}x{height}+{x},{y}: {file_template}")
        success, output_path = self._call(
            "screencast_area", x, y, width, height, file_template, options
        )
        return bool(success), str(output_path)

    def stop_screencast(self) -> bool:
        """Stop the running screencast."""
        logger.info("Stopping screencast")
        (success,) = self._call("stop_screencast")
        return bool(success)

    def close(self) -> None:
        """Close the bus connection."""
        if self._router is not None:
            self._router.close()
            self._router = None
            self._proxy = None
            logger.debug("Screencast connection closed")
