import logging
import sys

import click
from flask import Flask
from flask_login import LoginManager

from config import Config
from models import db, Role
from services import RecordService, get_service

_LOG_FORMAT = '%(asctime)s %(levelname)s [%(name)s] %(message)s'
_LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

login_manager = LoginManager()

logger = logging.getLogger(__name__)


def setup_logging(level=logging.INFO, stream=sys.stdout):
    """Attach a single stream handler to the root logger.

    Safe to call more than once; later calls only adjust the level.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    if root_logger.handlers:
        return

    handler = logging.StreamHandler(stream=stream)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, _LOG_DATE_FORMAT))
    root_logger.addHandler(handler)


@login_manager.user_loader
def load_user(user_id):
    return get_service().get_user(int(user_id))


def initialize_first_user(service, config):
    """Register the configured admin account if no account exists yet."""
    if service.get_users():
        return None
    return service.register(
        config['ADMIN_NAME'],
        config['ADMIN_EMAIL'],
        config['ADMIN_PASSWORD'],
        Role.admin
    )


def create_app(config=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if isinstance(config, dict):
        app.config.update(config)
    elif config is not None:
        app.config.from_object(config)

    setup_logging(logging.getLevelName(app.config['LOG_LEVEL']))

    db.init_app(app)
    login_manager.init_app(app)
    app.extensions['records'] = RecordService()

    # Create database tables
    with app.app_context():
        db.create_all()

    @app.cli.command('init-db')
    @click.option('--seed/--no-seed', default=True, help='Create the first admin account.')
    def init_db_command(seed):
        """Clear all records and reset identity counters."""
        service = get_service()
        service.initialise()
        click.echo('Initialised the record store.')
        if seed:
            admin = initialize_first_user(service, app.config)
            if admin is not None:
                click.echo(f'Created admin account {admin.email}.')

    logger.debug('Record service ready on %s', app.config['SQLALCHEMY_DATABASE_URI'])
    return app
