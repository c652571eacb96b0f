# Overview: Flask extension instances for the database and schema migrations.

from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

# SQLite cannot ALTER constraints in place; batch mode rebuilds the table instead
migrate = Migrate(render_as_batch=True)
