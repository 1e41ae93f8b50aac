"""Machine-readable rejection codes and the HTTP status each maps to"""

UNAUTHENTICATED = "UNAUTHENTICATED"
INVALID_INPUT = "INVALID_INPUT"
FREE_KICK_ALREADY_USED = "FREE_KICK_ALREADY_USED"
GAME_NOT_FOUND = "GAME_NOT_FOUND"
QUESTION_NOT_FOUND = "QUESTION_NOT_FOUND"
QUESTION_LOCKED = "QUESTION_LOCKED"
NO_QUESTIONS = "NO_QUESTIONS"
NO_PICKS = "NO_PICKS"
NOT_SETTLED = "NOT_SETTLED"
NO_LOSS = "NO_LOSS"
FORBIDDEN = "FORBIDDEN"
STORE_ERROR = "STORE_ERROR"

HTTP_STATUS = {
    UNAUTHENTICATED: 401,
    INVALID_INPUT: 400,
    FREE_KICK_ALREADY_USED: 409,
    GAME_NOT_FOUND: 404,
    QUESTION_NOT_FOUND: 404,
    QUESTION_LOCKED: 409,
    NO_QUESTIONS: 400,
    NO_PICKS: 400,
    NOT_SETTLED: 409,
    NO_LOSS: 409,
    FORBIDDEN: 403,
    STORE_ERROR: 500,
}

MESSAGES = {
    UNAUTHENTICATED: "Sign in to continue",
    INVALID_INPUT: "Invalid request",
    FREE_KICK_ALREADY_USED: "You have already used your free kick this season",
    GAME_NOT_FOUND: "Game not found",
    QUESTION_NOT_FOUND: "Question not found",
    QUESTION_LOCKED: "This question is locked",
    NO_QUESTIONS: "This game has no questions",
    NO_PICKS: "You have no picks in this game",
    NOT_SETTLED: "All of your picks in this game must be settled first",
    NO_LOSS: "You did not lose a pick in this game",
    FORBIDDEN: "Not allowed",
    STORE_ERROR: "Something went wrong, please try again",
}


def http_status(reason):
    return HTTP_STATUS.get(reason, 400)


def message_for(reason):
    return MESSAGES.get(reason, reason)
