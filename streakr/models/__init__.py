from streakr import db  # noqa: F401 - imported for model imports

from .comment import Comment
from .free_kick import FreeKickUse
from .game import Game
from .pick import Pick
from .question import Question
from .question_status import QuestionStatus
from .round import Round
from .season import SeasonConfig, SeasonContext
from .user import User

__all__ = [
    "User",
    "Round",
    "Game",
    "Question",
    "QuestionStatus",
    "Pick",
    "FreeKickUse",
    "SeasonConfig",
    "SeasonContext",
    "Comment",
]
