import atexit
import weakref

from flask import Flask
from flask_migrate import Migrate

from apps.api.scheduler.jobs import register_jobs
from services.extraction.service import FeedExtractionService
from services.store import make_store
from shared.db import db
from shared.logging_config import setup_logging
from shared.settings import settings

migrate = Migrate()

EXTENSION_KEY = "feed_extraction"

# services created by create_app(); weak so finished apps can be collected
_live_services = weakref.WeakSet()


@atexit.register
def _shutdown_services():
    for service in list(_live_services):
        service.shutdown()


def create_app(config: dict | None = None):
    app = Flask(__name__)
    app.config.from_mapping(
        SECRET_KEY=settings.SECRET_KEY,
        SQLALCHEMY_DATABASE_URI=settings.SQLALCHEMY_DATABASE_URI,
        SQLALCHEMY_TRACK_MODIFICATIONS=False,
        DATA_BACKEND=settings.DATA_BACKEND,
        AUTO_REFRESH_ON_START=settings.AUTO_REFRESH_ON_START,
        FEED_SOURCE=None,   # tests swap in a stub source
    )
    if config:
        app.config.update(config)

    setup_logging(settings.LOG_LEVEL)

    db.init_app(app)
    migrate.init_app(app, db)

    from apps.api import models  # noqa: F401  (registers tables)
    if app.config["DATA_BACKEND"] == "sql":
        with app.app_context():
            db.create_all()

    store = make_store(app.config["DATA_BACKEND"], app)
    service = FeedExtractionService(store, source=app.config["FEED_SOURCE"])
    app.extensions[EXTENSION_KEY] = service
    _live_services.add(service)

    from apps.api.routes.health import bp as health_bp
    from apps.api.routes.feeds import bp as feeds_bp
    app.register_blueprint(health_bp)
    app.register_blueprint(feeds_bp)

    if app.config["AUTO_REFRESH_ON_START"]:
        register_jobs(app, service)

    @app.get("/")
    def index():
        return "Fieldnotes Feed Extraction API"

    return app
