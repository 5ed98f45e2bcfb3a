"""Building database connection strings from a flat map of parameters."""

from __future__ import annotations

from collections.abc import Mapping
from urllib.parse import quote, urlencode

_PARAM_PREFIX = "param."
_USERINFO_SAFE = "$&+,;="
_PATH_SAFE = "$&+,/:;=@"


def _query(params: Mapping[str, str]) -> str:
    pairs = sorted(
        (key[len(_PARAM_PREFIX) :], value)
        for key, value in params.items()
        if key.startswith(_PARAM_PREFIX)
    )
    return urlencode(pairs)


def _require(params: Mapping[str, str], key: str, label: str) -> str:
    value = params.get(key, "")
    if not value:
        raise ValueError(f"{label} {key} is required")
    return value


def _tcp_dsn(creds: str, host: str, port: str, dbname: str, query: str) -> str:
    dsn = f"{creds}@tcp({host}:{port})/{dbname}"
    return f"{dsn}?{query}" if query else dsn


def _mysql(params: Mapping[str, str]) -> str:
    user = _require(params, "user", "mysql")
    host = params.get("host") or "127.0.0.1"
    port = params.get("port") or "3306"
    dbname = _require(params, "dbname", "mysql")
    password = params.get("password", "")
    creds = f"{user}:{password}" if password else user
    return _tcp_dsn(creds, host, port, dbname, _query(params))


def _ob_mysql(params: Mapping[str, str]) -> str:
    user = _require(params, "user", "ob mysql")
    tenant = _require(params, "tenant", "ob mysql")
    username = f"{user}@{tenant}"
    cluster = params.get("cluster", "")
    if cluster:
        username = f"{username}#{cluster}"
    host = params.get("host") or "127.0.0.1"
    port = params.get("port") or "2883"
    dbname = _require(params, "dbname", "ob mysql")
    password = params.get("password", "")
    creds = f"{username}:{password}" if password else username
    return _tcp_dsn(creds, host, port, dbname, _query(params))


def _postgres(params: Mapping[str, str]) -> str:
    user = _require(params, "user", "postgres")
    host = params.get("host") or "127.0.0.1"
    port = params.get("port") or "5432"
    dbname = _require(params, "dbname", "postgres")
    userinfo = (
        f"{quote(user, safe=_USERINFO_SAFE)}:"
        f"{quote(params.get('password', ''), safe=_USERINFO_SAFE)}"
    )
    path = dbname if dbname.startswith("/") else "/" + dbname
    dsn = f"postgres://{userinfo}@{host}:{port}{quote(path, safe=_PATH_SAFE)}"
    query = _query(params)
    return f"{dsn}?{query}" if query else dsn


def _sqlite(params: Mapping[str, str]) -> str:
    path = params.get("path", "")
    if not path:
        raise ValueError("sqlite path is required")
    return path


_BUILDERS = {
    "mysql": _mysql,
    "obmysql": _ob_mysql,
    "postgresql": _postgres,
    "sqlite": _sqlite,
}


def build_dsn(driver_name: str, params: Mapping[str, str]) -> str:
    """Build a connection string for *driver_name* from *params*.

    Supported drivers are mysql, obmysql, postgresql and sqlite. Keys of the form
    ``param.<name>`` become query parameters. Missing required values raise ``ValueError``.
    """
    builder = _BUILDERS.get(driver_name.lower())
    if builder is None:
        raise ValueError(f"unsupported driver: {driver_name}")
    return builder(params)