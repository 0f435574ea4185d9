class JudgeError(Exception):
    pass


class JudgeNotConfiguredError(JudgeError):
    pass


class JudgeRequestError(JudgeError):
    pass


class JudgeTimeoutError(JudgeError):
    pass


class UnsupportedLanguageError(JudgeError):
    pass
