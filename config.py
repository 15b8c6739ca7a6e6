import os


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY', 'your-secret-key-here')
    # In-memory SQLite unless a durable database is configured
    SQLALCHEMY_DATABASE_URI = os.environ.get('RECORDS_DATABASE_URI', 'sqlite://')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # First account created by `flask init-db`
    ADMIN_NAME = os.environ.get('ADMIN_NAME', 'Administrator')
    ADMIN_EMAIL = os.environ.get('ADMIN_EMAIL', 'admin@records.local')
    ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD', 'admin')


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    LOG_LEVEL = 'DEBUG'
