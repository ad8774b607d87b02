from __future__ import annotations
import os
from datetime import datetime, timezone
from importlib import import_module
from flask import Flask
from config import config_map
from extensions import db, migrate, login_manager
from sqlalchemy import inspect

def _seed_from_config(app):
    if not app.config.get("SEED_TEST_DATA"):
        return
    with app.app_context():
        # таблица users может ещё не быть создана (flask db upgrade / dev_db_init и т.п.)
        if not inspect(db.engine).has_table("users"):
            return

        from models import User  # локальный импорт, чтобы избежать циклов
        created = 0
        for u in app.config.get("DEFAULT_USERS", []):
            email = u["email"].lower()
            if User.query.filter_by(email=email).first():
                continue
            user = User(
                email=email,
                role=u["role"],
                first_mid_name=u.get("first_mid_name", ""),
                last_name=u.get("last_name", ""),
            )
            user.set_password(u["password"])
            db.session.add(user)
            created += 1
        if created:
            db.session.commit()
            app.logger.info("seeded default users", extra={"event": "seed", "entity": "user"})

def register_blueprints(app: Flask) -> None:
    # Жёстко импортируем модуль с маршрутами core перед взятием bp
    import_module("blueprints.core.routes")
    from blueprints.core import bp as core_bp
    from blueprints.auth.routes import bp as auth_bp
    from blueprints.department import bp as department_bp
    from blueprints.courses import bp as courses_bp
    from blueprints.instructor import bp as instructor_bp
    from blueprints.student import bp as student_bp
    from blueprints.enrollment import bp as enrollment_bp
    from blueprints.analysis import bp as analysis_bp
    from blueprints.admin.routes import bp as admin_bp

    # core без префикса → '/health' в корне
    app.register_blueprint(core_bp)
    prefix = app.config["API_PREFIX"]
    for bp in (auth_bp, department_bp, courses_bp, instructor_bp, student_bp,
               enrollment_bp, analysis_bp, admin_bp):
        app.register_blueprint(bp, url_prefix=prefix)

def create_app(config_name: str | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    cfg_name = config_name or os.getenv("FLASK_CONFIG", "default")
    app.config.from_object(config_map[cfg_name])
    # --- изоляция БД в тестах ---
    # pytest всегда выставляет переменную окружения PYTEST_CURRENT_TEST.
    # Делаем БД в памяти, чтобы никакие изменения из одного теста не протекали в другой.
    if os.environ.get("PYTEST_CURRENT_TEST"):
        app.config["SQLALCHEMY_DATABASE_URI"] = "sqlite:///:memory:"
        app.config.setdefault("SQLALCHEMY_ENGINE_OPTIONS", {"connect_args": {"check_same_thread": False}})
    app.config["STARTED_AT"] = datetime.now(timezone.utc)

    try:
        os.makedirs(app.instance_path, exist_ok=True)
    except OSError:
        pass
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    register_blueprints(app)
    _seed_from_config(app)
    return app
