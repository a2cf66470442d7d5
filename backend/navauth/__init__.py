from flask import Flask
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker, scoped_session
from dotenv import load_dotenv
from typing import Optional, Dict, Any
import logging
import os

load_dotenv()

db_engine = None
SessionLocal = None
jwt = JWTManager()

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


def configure_logging(level_name: str):
    level = getattr(logging, str(level_name).upper(), logging.INFO)
    root = logging.getLogger('navauth')
    root.setLevel(level)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)


def _make_engine(db_url: str):
    if db_url.endswith(':memory:'):
        # one shared in-memory SQLite database across sessions and the tracking threads
        return create_engine(
            db_url,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(db_url, future=True, pool_pre_ping=True)


def _error(status: int, title: str, detail: str):
    return {'error': {'status': status, 'title': title, 'detail': detail}}, status


def create_app(config: Optional[Dict[str, Any]] = None):
    global db_engine, SessionLocal
    app = Flask(__name__)

    app.config.update(
        JWT_SECRET_KEY=os.getenv('JWT_SECRET_KEY', 'dev-secret'),
        DATABASE_URL=os.getenv('DATABASE_URL', 'sqlite:///dev.db'),
        ROUTE_TRACK_TIMEOUT_SECONDS=float(os.getenv('ROUTE_TRACK_TIMEOUT_SECONDS', '5')),
        LOG_LEVEL=os.getenv('LOG_LEVEL', 'INFO'),
    )
    if config:
        # tests and scripts override environment defaults here
        app.config.update(config)

    configure_logging(app.config['LOG_LEVEL'])

    db_engine = _make_engine(app.config['DATABASE_URL'])
    SessionLocal = scoped_session(sessionmaker(bind=db_engine, expire_on_commit=False, autoflush=False))

    jwt.init_app(app)

    from .events import EventDispatcher, log_access_change
    dispatcher = EventDispatcher()
    dispatcher.subscribe(log_access_change)
    app.extensions['navauth.events'] = dispatcher

    from .routes.navigation import nav_bp
    from .routes.groups import groups_bp
    app.register_blueprint(nav_bp, url_prefix='/navigation')
    app.register_blueprint(groups_bp, url_prefix='/groups')

    @app.route('/healthz')
    def health():
        return {'status': 'ok'}

    from .errors import NavAuthError

    @app.errorhandler(NavAuthError)
    def handle_domain_errors(e):  # type: ignore
        if e.status >= 500:
            app.logger.error('%s: %s', type(e).__name__, e.detail)
        return _error(e.status, e.title, e.detail)

    # Everything else keeps the same {'error': {...}} shape
    @app.errorhandler(Exception)
    def handle_errors(e):  # type: ignore
        if isinstance(e, HTTPException):
            return _error(e.code, e.name, e.description)
        app.logger.exception('Unhandled exception')
        return _error(500, 'Internal Server Error', 'Unexpected error')

    return app


def get_db():
    return SessionLocal()
