class CommonError(Exception):
    """Base exception for common app errors"""

    pass


class FamilyRequiredError(CommonError):
    def __init__(self, message="`family` is required to create an instance."):
        super().__init__(message)


class FamilyImmutableError(CommonError):
    def __init__(self, message="`family` cannot be updated."):
        super().__init__(message)
