"""
DataFlow Core Exceptions

Errors raised outside the copy engine itself. Database errors raised while
copying are left as SQLAlchemy exceptions and propagate unchanged.
"""


class DataFlowError(Exception):
    """Base exception for DataFlow."""

    def __init__(self, message: str, details: str = None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def to_dict(self):
        """Convert exception to dictionary format."""
        result = {
            'error': self.__class__.__name__,
            'message': self.message
        }
        if self.details:
            result['details'] = self.details
        return result


class ConfigurationError(DataFlowError):
    """Invalid or unreadable job description."""
    pass
