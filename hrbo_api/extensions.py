# hrbo_api/extensions.py
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_jwt_extended import JWTManager
from flask_cors import CORS

db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()
cors = CORS()

def normalize_db_url(url: str) -> str:
    if not url:
        return url
    # Render / Heroku style → SQLAlchemy psycopg3 driver
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+psycopg://", 1)
    elif url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url

def init_db(app):
    url = app.config.get("SQLALCHEMY_DATABASE_URI", "") or ""
    app.config["SQLALCHEMY_DATABASE_URI"] = normalize_db_url(url)

    # pool options only make sense for a real server
    if not url.startswith("sqlite"):
        app.config.setdefault("SQLALCHEMY_ENGINE_OPTIONS", {
            "pool_pre_ping": True,
            "pool_recycle": 270,
            "pool_size": 5,
            "max_overflow": 2,
            "pool_timeout": 30,
        })

    db.init_app(app)
    migrate.init_app(app, db)
