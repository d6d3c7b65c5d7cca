from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

socketio = SocketIO(async_mode=None)

def create_app(config_class=Config, **service_overrides):
    """Build the Flask app and its room services.

    ``service_overrides`` are passed to ``build_services`` (scheduler,
    gateway, clock, today, rng) so tests can swap in deterministic parts.
    """
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []

    CORS(flask_app, supports_credentials=True, origins=allowed_origins)
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from quizroom.services.container import build_services
    services = build_services(flask_app, socketio, **service_overrides)
    flask_app.extensions['quizroom'] = services

    from quizroom.main import main
    flask_app.register_blueprint(main)

    from quizroom.api.leaderboard import leaderboard
    flask_app.register_blueprint(leaderboard, url_prefix='/api')

    from quizroom.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    from quizroom.services.rooms.scheduler import start_maintenance
    start_maintenance(flask_app, services)

    @click.command('questions-check')
    @click.argument('path', required=False)
    def questions_check_command(path):
        """Validates a question bank file and prints counts per kind."""
        from quizroom.errors import QuestionBankError
        from quizroom.services.rooms.questions import QuestionBank
        try:
            bank = QuestionBank.load(path or flask_app.config.get('QUESTION_BANK_PATH') or None)
        except QuestionBankError as exc:
            raise click.ClickException(exc.message)
        counts = {}
        for q in bank:
            counts[q.kind] = counts.get(q.kind, 0) + 1
        click.echo(f'{len(bank)} questions')
        for kind, count in sorted(counts.items()):
            click.echo(f'  {kind}: {count}')

    flask_app.cli.add_command(questions_check_command)

    return flask_app
