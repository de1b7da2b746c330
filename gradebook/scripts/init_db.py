"""
Script para inicializar las tablas del motor de calificaciones

Uso:
    python -m gradebook.scripts.init_db
    GRADEBOOK_DATABASE_URL=postgresql://... python -m gradebook.scripts.init_db
"""
from gradebook.core.logging_config import configure_logging
from gradebook.database.config import init_database


def init_db():
    """Create all tables"""
    configure_logging()
    print("Creating database tables...")
    config = init_database()
    print(f"✓ Tables created on {config.engine.url.render_as_string(hide_password=True)}")


if __name__ == "__main__":
    init_db()
