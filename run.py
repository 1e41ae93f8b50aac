from streakr import create_app, db
from streakr.models import FreeKickUse, Pick, QuestionStatus, Round, SeasonConfig, User

app = create_app()


@app.shell_context_processor
def make_shell_context():
    return {
        "db": db,
        "User": User,
        "Round": Round,
        "Pick": Pick,
        "QuestionStatus": QuestionStatus,
        "FreeKickUse": FreeKickUse,
        "SeasonConfig": SeasonConfig,
    }


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000, debug=True)
