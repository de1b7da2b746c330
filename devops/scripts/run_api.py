"""
Script para ejecutar la API REST del motor de calificaciones

Este script inicia el servidor FastAPI con uvicorn.

Uso:
    python devops/scripts/run_api.py              # Modo desarrollo
    python devops/scripts/run_api.py --production # Modo producción

En modo producción se levantan 4 workers; el cache de notas de periodo es
por proceso, así que GRADEBOOK_TERM_CACHE_ENABLED debe quedar en false.
"""
import argparse

import uvicorn

APP_PATH = "gradebook.api.main:app"


def run_dev_server(port: int):
    """Ejecuta servidor en modo desarrollo con auto-reload"""
    print("=" * 80)
    print("Gradebook Engine - Development Server")
    print("=" * 80)
    print(f"Server: http://localhost:{port}")
    print(f"Swagger UI: http://localhost:{port}/docs")
    print("=" * 80)

    uvicorn.run(
        APP_PATH,
        host="0.0.0.0",
        port=port,
        reload=True,
        log_level="info",
        access_log=True,
    )


def run_production_server(port: int):
    """Ejecuta servidor en modo producción"""
    print("=" * 80)
    print("Gradebook Engine - Production Server")
    print("=" * 80)
    print(f"Server: http://localhost:{port}")
    print("=" * 80)

    uvicorn.run(
        APP_PATH,
        host="0.0.0.0",
        port=port,
        reload=False,
        workers=4,
        log_level="warning",
        access_log=True,
    )


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run Gradebook Engine API Server")
    parser.add_argument(
        "--production",
        action="store_true",
        help="Run in production mode (no auto-reload, multiple workers)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to run the server on (default: 8000)",
    )

    args = parser.parse_args()

    if args.production:
        run_production_server(args.port)
    else:
        run_dev_server(args.port)
