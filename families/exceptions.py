class FamilyError(Exception):
    """Base exception for family directory errors"""

    default_message = ""

    def __init__(self, message: str | None = None):
        if message is None:
            message = self.default_message
        super().__init__(message)


class FamilyMemberNotFoundError(FamilyError):
    default_message = "Family member does not exist"
