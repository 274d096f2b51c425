import os, sys, pytest
# Ensure backend directory is on path so 'helpdesk' can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
from helpdesk import create_app, get_db
from helpdesk.models.base import Base
# Import all model modules to ensure tables are registered before create_all
import helpdesk.models.user  # noqa: F401
import helpdesk.models.client  # noqa: F401
import helpdesk.models.service_tag  # noqa: F401
import helpdesk.models.ticket  # noqa: F401
import helpdesk.models.comment  # noqa: F401


@pytest.fixture(scope='session', autouse=True)
def app_instance(tmp_path_factory):
    os.environ['DATABASE_URL'] = 'sqlite+pysqlite:///:memory:'
    app = create_app({
        'TESTING': True,
        'DATABASE_URL': 'sqlite+pysqlite:///:memory:',
        'JWT_SECRET_KEY': 'test-secret-key-with-enough-length-for-hs256',
        'STORAGE_ROOT': str(tmp_path_factory.mktemp('storage')),
        'PUBLIC_BASE_URL': 'http://files.test',
        'COMPANY_NAME': 'Acme Support',
        # mail transports stay unconfigured unless a test opts in
        'SMTP_HOST': '', 'SMTP_USER': '', 'SMTP_PASSWORD': '', 'SMTP_FROM_EMAIL': '',
        'RESEND_API_KEY': '',
    })
    # After app and blueprints are registered, ensure all tables exist
    with app.app_context():
        engine = get_db().get_bind()
        Base.metadata.create_all(engine)
    yield app


@pytest.fixture()
def client(app_instance):
    return app_instance.test_client()
