"""
Custom exceptions for the scraping engine.
"""


class ScrapingError(Exception):
    """Base exception for all scraping-related errors."""

    def __init__(self, message: str, url: str = None):
        self.message = message
        self.url = url
        super().__init__(self.message)


class AlreadyRunningError(ScrapingError):
    """Raised when a scraper run is requested while another one is in progress."""

    def __init__(self, message: str = "Scraper is already running"):
        super().__init__(message)


class StoreUnavailable(ScrapingError):
    """Raised when the bid or credential store cannot be reached."""

    def __init__(self, message: str, store: str = None, saved: int = 0):
        self.store = store
        # Records written before the store failed
        self.saved = saved
        super().__init__(message)


class AuthenticationError(ScrapingError):
    """Raised when portal credentials are missing or the login flow fails."""

    def __init__(self, message: str, portal: str = None, url: str = None):
        self.portal = portal
        super().__init__(message, url)


class NavigationError(ScrapingError):
    """Raised when a page fails to load or an expected element never appears."""

    def __init__(self, message: str, url: str = None, selector: str = None):
        self.selector = selector
        super().__init__(message, url)


class ExtractionSkip(ScrapingError):
    """Raised for a single listing row that cannot be parsed."""

    def __init__(self, message: str, row_index: int = None):
        self.row_index = row_index
        super().__init__(message)


class SessionError(ScrapingError):
    """Raised when browser session management fails."""

    def __init__(self, message: str, session_type: str = None):
        self.session_type = session_type
        super().__init__(message)


class BrowserLaunchError(SessionError):
    """Raised when the automated browser cannot be started."""

    def __init__(self, message: str):
        super().__init__(message, "playwright")


class ValidationError(ScrapingError):
    """Raised when a credential or record fails validation."""

    def __init__(self, message: str, field: str = None, value: str = None):
        self.field = field
        self.value = value
        super().__init__(message)
