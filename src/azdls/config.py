from __future__ import annotations
import dataclasses
import typing as t


DEFAULT_AUTHORITY_HOST = "https://login.microsoftonline.com"

_REDACTED_FIELDS = ("account_name", "account_key", "client_secret")


@dataclasses.dataclass
class ConnectionConfig:
    """Connection parameters for one Data Lake filesystem.

        filesystem and endpoint are required, everything else is optional. The
        builder checks the required fields when it builds the backend.
    """

    root: t.Optional[str] = None
    filesystem: str = ""
    endpoint: t.Optional[str] = None
    account_name: t.Optional[str] = None
    account_key: t.Optional[str] = None
    tenant_id: t.Optional[str] = None
    client_id: t.Optional[str] = None
    client_secret: t.Optional[str] = None
    authority_host: t.Optional[str] = None

    def __repr__(self):
        values = []
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if f.name in _REDACTED_FIELDS:
                values.append(f"{f.name}='<redacted>'")
            else:
                values.append(f"{f.name}={value!r}")
        return f"ConnectionConfig({', '.join(values)})"

    @classmethod
    def from_mapping(cls, values: t.Mapping[str, t.Any]) -> ConnectionConfig:
        """Build a config from a mapping, ignoring keys that are not config fields."""
        names = {f.name for f in dataclasses.fields(cls)}
        kwargs = {k: str(v) for k, v in (values or {}).items() if k in names and v is not None}
        return cls(**kwargs)
