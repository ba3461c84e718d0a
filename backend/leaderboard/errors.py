"""Error taxonomy shared by the services and the HTTP layer.

Every error carries the HTTP status it maps to and a message that is safe
to show to clients.
"""


class LeaderboardError(Exception):
    status_code = 500

    def __init__(self, message='Internal error'):
        super().__init__(message)
        self.message = message


class ValidationError(LeaderboardError):
    status_code = 400


class NotFoundError(LeaderboardError):
    status_code = 404


class ConflictError(LeaderboardError):
    status_code = 400


class DuplicateInvitationError(ConflictError):
    pass


class NoValidInvitationError(ConflictError):
    pass


class StoreError(LeaderboardError):
    status_code = 500


class CapacityExhaustedError(StoreError):
    pass
