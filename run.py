# Eventlet monkey patching MUST be first before any other imports
import eventlet
eventlet.monkey_patch()

import os  # noqa: E402

from fantaschedina import create_app, db, socketio  # noqa: E402
from fantaschedina.models import (  # noqa: E402
    Match,
    Prediction,
    PrizeDistribution,
    Team,
    User,
    WinnerPayout,
)

app = create_app()


@app.shell_context_processor
def make_shell_context():
    return {
        "db": db,
        "User": User,
        "Match": Match,
        "Prediction": Prediction,
        "Team": Team,
        "PrizeDistribution": PrizeDistribution,
        "WinnerPayout": WinnerPayout,
    }


if __name__ == "__main__":
    socketio.run(
        app,
        host="0.0.0.0",
        port=int(os.environ.get("PORT", 5000)),
        debug=app.config.get("DEBUG", False),
    )
