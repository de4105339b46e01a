from liveedit.host.connection import Connection, HttpConnection, LocalConnection
from liveedit.host.controller import HostEditController
from liveedit.host.history import EditHistory

__all__ = ["Connection", "EditHistory", "HostEditController", "HttpConnection", "LocalConnection"]
