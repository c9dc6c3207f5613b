"""
Custom Exceptions for BangBank
"""

class BankingSystemException(Exception):
    """Root of every error the services raise to the pages"""
    def __init__(self, message: str, error_code: str = None):
        self.message = message
        self.error_code = error_code
        super().__init__(self.message)

class ValidationException(BankingSystemException):
    """Bad or missing user input"""
    pass

class DuplicateApplicationException(ValidationException):
    """Raised when a customer already holds a pending or active application for a product"""
    pass

class InsufficientFundsException(BankingSystemException):
    """Source balance below the requested debit"""
    pass

class InvalidTransactionException(BankingSystemException):
    """Transfer or top-up rejected by a business rule"""
    pass

class DatabaseException(BankingSystemException):
    """Wraps mysql.connector errors"""
    pass

class AuthenticationException(BankingSystemException):
    """Raised when authentication fails"""
    pass

class AuthorizationException(BankingSystemException):
    """Raised when user lacks permission for operation"""
    pass

class InvalidOTPException(BankingSystemException):
    """Raised when OTP is invalid, consumed or expired"""
    pass

class ExternalServiceException(BankingSystemException):
    """Raised when email or calendar calls fail"""
    pass

class NotFoundException(BankingSystemException):
    """Raised when a referenced record does not exist"""
    pass

class UserNotFoundException(NotFoundException):
    pass

class ProductNotFoundException(NotFoundException):
    pass

class AccountNotFoundException(NotFoundException):
    """Raised when referenced account does not exist"""
    pass

class CardNotFoundException(NotFoundException):
    pass

class SessionNotFoundException(NotFoundException):
    """Raised when an advisor slot does not exist"""
    pass

class ConsultationNotFoundException(NotFoundException):
    pass
