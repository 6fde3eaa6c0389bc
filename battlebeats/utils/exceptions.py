from http import HTTPStatus


class BattleBeatsError(Exception):
    """Base error for anything a route should turn into a JSON message"""
    status_code = HTTPStatus.BAD_REQUEST

    def __init__(self, message=None):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__


class ValidationError(BattleBeatsError):
    """Invalid input"""


class NotFoundError(BattleBeatsError):
    """Resource not found"""
    status_code = HTTPStatus.NOT_FOUND


class PermissionDeniedError(BattleBeatsError):
    """Access denied"""
    status_code = HTTPStatus.FORBIDDEN


class ConflictError(BattleBeatsError):
    """Resource already exists"""
    status_code = HTTPStatus.CONFLICT


class GenreLimitError(BattleBeatsError):
    """Maximum number of genres reached"""


class NoTrialSlotsAvailableError(BattleBeatsError):
    """No trial slots available for this genre"""


class DuplicateVoteError(BattleBeatsError):
    """Already voted in this battle"""


class PaymentProviderError(BattleBeatsError):
    """Payment provider request failed"""
    status_code = HTTPStatus.BAD_GATEWAY
