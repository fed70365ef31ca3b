from databases import Database

from fairway.config import config

database = Database(str(config.pg_dsn))
