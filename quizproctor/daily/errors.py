class DailyChallengeError(Exception):
    pass


class DailyChallengeAlreadyCompletedError(DailyChallengeError):
    pass


class DailyChallengeNotFoundError(DailyChallengeError):
    pass


class InvalidChallengeTypeError(DailyChallengeError):
    pass
