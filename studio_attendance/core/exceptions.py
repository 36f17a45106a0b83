# studio_attendance/core/exceptions.py

SHARE_HINT = "Ensure the sheet is shared with the service account as Editor"


class ConfigurationError(RuntimeError):
    """Missing or unusable configuration detected at startup."""


class SheetsError(Exception):
    """Any failure talking to the spreadsheet backend. Mapped to HTTP 502."""

    def __init__(self, message: str, hint: str = SHARE_HINT):
        super().__init__(message)
        self.message = message
        self.hint = hint


class SheetsAuthError(SheetsError):
    def __init__(self, message: str = "Failed to authenticate with Google Sheets API. "
                                      "Please check your service account credentials."):
        super().__init__(message, hint="Check GOOGLE_SERVICE_ACCOUNT_EMAIL and GOOGLE_PRIVATE_KEY")


class EmailDeliveryError(Exception):
    pass
