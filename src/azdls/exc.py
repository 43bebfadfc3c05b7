import typing as t


class AzdlsError(Exception):
    """Super-type of all errors raised by the azdls adapter"""

    def __init__(self, msg: str, code_space: str = "AZDLS", code_number: int = None, is_recoverable: bool = False):
        self.internal_code = "" if code_number is None else f"{code_space}-{code_number}"
        super().__init__(f"{msg} [{self.internal_code}]")
        self.is_recoverable = is_recoverable
        self.operation: t.Optional[str] = None
        self.context: dict[str, str] = {}

    def with_operation(self, operation: str):
        """Record the operation that raised the error, keeping the first (innermost) one as context."""
        if self.operation is not None and self.operation != operation:
            self.context.setdefault("called", self.operation)
        self.operation = operation
        return self

    def with_context(self, key: str, value) -> "AzdlsError":
        if value is not None:
            self.context[key] = str(value)
        return self

    def __str__(self):
        s = super().__str__()
        extras = []
        if self.operation:
            extras.append(f"operation: {self.operation}")
        extras.extend(f"{k}: {v}" for k, v in self.context.items())
        if extras:
            s += f" ({', '.join(extras)})"
        return s


class ConfigInvalid(AzdlsError):
    """Raised by the builder when the connection configuration is unusable."""

    def __init__(self, msg: str, code_number: int, field: str = None):
        super().__init__(msg, "AZDLS_CFG", code_number)
        self.field = field


class UnexpectedResponse(AzdlsError):
    """Raised when the remote response does not match what the service documents."""

    def __init__(self, msg: str, code_number: int):
        super().__init__(msg, "AZDLS_RESP", code_number)


class RemoteOperationFailed(AzdlsError):
    """Raised when the service answers with a status outside an operation's success set."""

    def __init__(self,
                 msg: str,
                 status_code: int,
                 body: bytes = b'',
                 kind: str = "unexpected",
                 error_code: t.Optional[str] = None,
                 is_recoverable: bool = False):
        super().__init__(msg, "AZDLS_HTTP", status_code, is_recoverable=is_recoverable)
        self.status_code = status_code
        self.body = body
        self.kind = kind
        self.error_code = error_code
