from typing import Any, Optional

__all__ = (
    "AdapterNotFoundError",
    "DatabaseError",
    "ImproperConfigurationError",
    "MigrationError",
    "MissingDependencyError",
    "SQLBQError",
    "SQLBuilderError",
)


class SQLBQError(Exception):
    """Base exception class from which all sqlbq exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``SQLBQError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class MissingDependencyError(SQLBQError, ImportError):
    """Missing dependency.

    Raised when a module depends on a package that has not been installed.
    """

    def __init__(self, package: str, install_package: Optional[str] = None) -> None:
        msg = f"Package {package!r} is not installed but required. You can install it by running "
        if install_package is None:
            msg += f"'pip install {package}'"
        else:
            msg += (
                f"'pip install sqlbq[{install_package}]' to install sqlbq with the required extra "
                f"or 'pip install {package}' to install the package separately"
            )
        super().__init__(msg)


class ImproperConfigurationError(SQLBQError):
    """Improper Configuration error.

    Raised when connection options are missing or the backend client cannot be configured.
    """


class AdapterNotFoundError(SQLBQError):
    """No adapter is registered or importable for the requested scheme."""

    def __init__(self, scheme: str) -> None:
        super().__init__(f"No adapter available for scheme {scheme!r}")
        self.scheme = scheme


class DatabaseError(SQLBQError):
    """Generic error raised for failures reported by the database.

    Vendor exceptions are chained as ``__cause__``.
    """


class SQLBuilderError(SQLBQError):
    """Issues Building or Generating SQL statements."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "Issues building SQL statement."
        super().__init__(message)


class MigrationError(SQLBQError):
    """A migration directory is inconsistent or a migration cannot be applied."""

