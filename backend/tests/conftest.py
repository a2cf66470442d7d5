import os, sys, pytest
# Ensure backend directory is on path so 'navauth' and 'tests' can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
from flask_jwt_extended import create_access_token
from navauth import create_app, get_db
from navauth.constants.permissions import NAV_MANAGE, GROUP_MANAGE
from navauth.models.authz import Base
import navauth.models.audit  # noqa: F401  register audit_logs before create_all


@pytest.fixture(scope='session', autouse=True)
def app_instance():
    os.environ['DATABASE_URL'] = 'sqlite+pysqlite:///:memory:'
    app = create_app({'DATABASE_URL': 'sqlite+pysqlite:///:memory:', 'JWT_SECRET_KEY': 'test-secret-key-with-enough-length'})
    with app.app_context():
        engine = get_db().get_bind()
        Base.metadata.create_all(engine)
    yield app


@pytest.fixture(autouse=True)
def clean_tables(app_instance):
    yield
    session = get_db()
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.expunge_all()


@pytest.fixture()
def client(app_instance):
    return app_instance.test_client()


@pytest.fixture()
def make_headers(app_instance):
    def _make(user_id=1, perms=()):
        with app_instance.app_context():
            token = create_access_token(identity=str(user_id), additional_claims={'perms': list(perms)})
        return {'Authorization': f'Bearer {token}'}
    return _make


@pytest.fixture()
def admin_headers(make_headers):
    return make_headers(1, [NAV_MANAGE, GROUP_MANAGE])


@pytest.fixture()
def events(app_instance):
    """Collect every AccessChanged published while the test runs."""
    dispatcher = app_instance.extensions['navauth.events']
    seen = []
    dispatcher.subscribe(seen.append)
    yield seen
    dispatcher.unsubscribe(seen.append)
