class DataTablesError(Exception):
    """Base class for every error raised by datatables_sql."""


class MissingParameterError(DataTablesError):
    """A required DataTables argument is absent or unreadable."""

    def __init__(self, parameter: str, message: str = "Bad or missing DataTables argument."):
        self.parameter = parameter
        self.message = message
        super().__init__(f"{message} (Parameter '{parameter}')")


class InvalidColumnError(DataTablesError):
    """A column reference cannot be turned into a SQL identifier."""


class ConfigurationError(DataTablesError):
    """The DataTables processor was wired up incorrectly."""
