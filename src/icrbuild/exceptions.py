"""Custom exceptions for icrbuild CLI tool.

This module defines a hierarchy of custom exceptions for better error
categorization and handling throughout the application.
"""


class IcrbuildError(Exception):
    """Base exception for all icrbuild errors.

    Parameters
    ----------
    message : str
        Error message describing what went wrong.
    details : dict, optional
        Additional structured information about the error.

    Attributes
    ----------
    message : str
        The error message.
    details : dict
        Dictionary containing additional error context.
    """

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        """Format error message with optional details.

        Returns
        -------
        str
            Formatted error message.
        """
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ConfigError(IcrbuildError):
    """Configuration loading or validation error.

    Raised when:
    - Configuration files are invalid
    - The configured region has no registry endpoint
    - Configuration values are invalid
    """

    pass


class ValidationError(IcrbuildError):
    """Input validation error.

    Raised when:
    - The image reference is malformed
    - The build context is not a directory
    - A build argument has no key
    - A version string cannot be parsed
    """

    pass


class CredentialError(IcrbuildError):
    """No usable IBM Cloud credentials.

    Raised when:
    - The Docker config has no entry or API key for the registry
    - The IBM Cloud CLI session file is missing or not logged in
    - Every credential source has been exhausted
    """

    pass


class CloudAPIError(IcrbuildError):
    """Error communicating with IBM Cloud APIs.

    Parameters
    ----------
    message : str
        Error message describing the API error.
    api : str, optional
        Name of the API that failed (iam, registry).
    status_code : int, optional
        HTTP status code from the API response.

    Attributes
    ----------
    api : str or None
        Name of the API that failed.
    status_code : int or None
        HTTP status code if available.
    """

    def __init__(self, message: str, api: str = None, status_code: int = None):
        details = {}
        if api:
            details["api"] = api
        if status_code:
            details["status_code"] = status_code

        super().__init__(message, details)
        self.api = api
        self.status_code = status_code


class BuildError(IcrbuildError):
    """The remote image build reported an error.

    Raised when the build output stream carries an ``error`` or
    ``errorDetail`` message.
    """

    pass


def wrap_error(error: Exception, message: str) -> IcrbuildError:
    """Wrap an exception with additional context, keeping its category.

    Parameters
    ----------
    error : Exception
        Original exception.
    message : str
        Context prepended to the original message.

    Returns
    -------
    IcrbuildError
        Exception of the same class as ``error`` when it is an
        ``IcrbuildError``, otherwise a plain ``IcrbuildError``.
    """
    if isinstance(error, CloudAPIError):
        return CloudAPIError(f"{message}: {error.message}", api=error.api, status_code=error.status_code)
    if isinstance(error, IcrbuildError):
        return type(error)(f"{message}: {error.message}", error.details)
    return IcrbuildError(f"{message}: {error}")
