#!/usr/bin/env python3
"""
AIOS Forge - Entry Point

This is the main entry point for AIOS Forge.
It initializes logging, loads configuration, and starts the Flask application.
It can also generate a package offline from a project model file.

Usage:
    Development:
        python run.py dev

    Production:
        gunicorn --bind 0.0.0.0:5000 --workers 4 "run:create_application()"

    Offline export:
        python run.py export project.yaml --out my-aios.zip

Environment Variables:
    FLASK_ENV: development|production (default: production)
    FLASK_DEBUG: true|false (default: false)
    FLASK_HOST: Host to bind to (default: 0.0.0.0)
    FLASK_PORT: Port to bind to (default: 5000)
    LOG_LEVEL: DEBUG|INFO|WARNING|ERROR (default: INFO)
    DEV_MODE: true|false - use the local mock backend (default: false)
"""

import os
import sys
import json
import logging
import signal
import atexit
from pathlib import Path
from datetime import datetime, timezone

import yaml

# Add project root to Python path
PROJECT_ROOT = Path(__file__).parent.absolute()
sys.path.insert(0, str(PROJECT_ROOT))

from dotenv import load_dotenv

load_dotenv(PROJECT_ROOT / '.env')

VERSION = '1.0.0'


# =============================================================================
# Logging Configuration
# =============================================================================

class JSONFormatter(logging.Formatter):
    """One JSON object per log record."""

    def format(self, record):
        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }
        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def setup_logging() -> logging.Logger:
    """
    Configure application logging.

    Sets up logging with console and file handlers.
    Log files are stored in storage/logs/ directory.

    Returns:
        Configured logger instance
    """
    log_dir = PROJECT_ROOT / 'storage' / 'logs'
    log_dir.mkdir(parents=True, exist_ok=True)

    log_level_str = os.getenv('LOG_LEVEL', 'INFO').upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    formatter = logging.Formatter(
        fmt='%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)

    # File handler - one file per day
    log_filename = log_dir / f"app_{datetime.now().strftime('%Y%m%d')}.log"
    file_handler = logging.FileHandler(log_filename, encoding='utf-8')
    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)

    # JSON file handler for structured logs
    json_log_filename = log_dir / f"app_{datetime.now().strftime('%Y%m%d')}.jsonl"
    json_file_handler = logging.FileHandler(json_log_filename, encoding='utf-8')
    json_file_handler.setLevel(log_level)
    json_file_handler.setFormatter(JSONFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(json_file_handler)

    # Reduce noise from third-party libraries
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)
    logging.getLogger('werkzeug').setLevel(logging.WARNING)

    logger = logging.getLogger('aios_forge')
    logger.info(f"Logging initialized at level {log_level_str}")
    logger.info(f"Log files: {log_filename}")

    return logger


# =============================================================================
# Configuration Validation
# =============================================================================

def validate_configuration() -> dict:
    """
    Validate required configuration and environment variables.

    Supabase and the AI gateway key are optional in DEV_MODE, where the
    mock backend is used and chat/compliance are disabled without a key.

    Returns:
        Dictionary with validated configuration

    Raises:
        SystemExit: If critical configuration is missing
    """
    logger = logging.getLogger('aios_forge.config')

    config = {
        'flask': {
            'env': os.getenv('FLASK_ENV', 'production'),
            'debug': os.getenv('FLASK_DEBUG', 'false').lower() == 'true',
            'host': os.getenv('FLASK_HOST', '0.0.0.0'),
            'port': int(os.getenv('FLASK_PORT', 5000)),
            'secret_key': os.getenv('FLASK_SECRET_KEY')
        },
        'dev_mode': os.getenv('DEV_MODE', 'false').lower() == 'true',
        'supabase': {
            'url': os.getenv('SUPABASE_URL'),
            'anon_key': os.getenv('SUPABASE_ANON_KEY'),
            'service_role_key': os.getenv('SUPABASE_SERVICE_ROLE_KEY')
        },
        'gateway': {
            'url': os.getenv('AI_GATEWAY_URL'),
            'api_key': os.getenv('AI_GATEWAY_API_KEY')
        }
    }

    errors = []
    warnings = []

    # Flask secret key
    if not config['flask']['secret_key']:
        if config['flask']['env'] == 'production':
            errors.append("FLASK_SECRET_KEY is required in production")
        else:
            config['flask']['secret_key'] = 'dev-secret-key-not-for-production'
            warnings.append("Using default FLASK_SECRET_KEY (development only)")

    # Supabase configuration
    if config['dev_mode']:
        warnings.append("DEV_MODE enabled, using the local mock backend")
    else:
        for key, name in (('url', 'SUPABASE_URL'), ('anon_key', 'SUPABASE_ANON_KEY'),
                          ('service_role_key', 'SUPABASE_SERVICE_ROLE_KEY')):
            if not config['supabase'][key]:
                errors.append(f"{name} is required")

    # AI gateway configuration
    if not config['gateway']['api_key']:
        if config['dev_mode']:
            warnings.append("AI_GATEWAY_API_KEY is not set, chat and compliance review are disabled")
        else:
            errors.append("AI_GATEWAY_API_KEY is required")

    for warning in warnings:
        logger.warning(warning)

    if errors:
        for error in errors:
            logger.error(f"Configuration error: {error}")
        logger.error("Please check your .env file or environment variables")
        sys.exit(1)

    logger.info("Configuration validated successfully")
    logger.info(f"Environment: {config['flask']['env']}")
    logger.info(f"Debug mode: {config['flask']['debug']}")

    return config


# =============================================================================
# Application Factory
# =============================================================================

def create_application():
    """
    Create and configure the Flask application.

    This is the application factory function that can be used by WSGI servers
    like Gunicorn.

    Returns:
        Configured Flask application instance
    """
    logger = logging.getLogger('aios_forge.app')

    try:
        from app import create_app
        app = create_app()
        logger.info("Flask application created successfully")
        return app
    except ImportError as e:
        logger.error(f"Failed to import application: {e}")
        logger.error("Make sure all dependencies are installed: pip install -e .")
        sys.exit(1)
    except Exception as e:
        logger.exception(f"Failed to create application: {e}")
        sys.exit(1)


# =============================================================================
# Signal Handlers
# =============================================================================

def setup_signal_handlers(logger: logging.Logger):
    """
    Setup graceful shutdown signal handlers.

    Args:
        logger: Logger instance for logging shutdown events
    """
    def handle_shutdown(signum, frame):
        """Handle shutdown signals gracefully."""
        sig_name = signal.Signals(signum).name
        logger.info(f"Received {sig_name} signal, initiating graceful shutdown...")
        cleanup()
        sys.exit(0)

    signal.signal(signal.SIGTERM, handle_shutdown)
    signal.signal(signal.SIGINT, handle_shutdown)

    logger.debug("Signal handlers registered")


def cleanup():
    """
    Perform cleanup tasks on application shutdown.
    """
    logger = logging.getLogger('aios_forge.cleanup')
    logger.info("Performing cleanup tasks...")

    for handler in logging.root.handlers:
        handler.flush()

    logger.info("Cleanup completed successfully")


# =============================================================================
# Health Check
# =============================================================================

def perform_startup_checks(config: dict) -> bool:
    """
    Perform startup health checks.

    Args:
        config: Application configuration dictionary

    Returns:
        True if all checks pass, False otherwise
    """
    logger = logging.getLogger('aios_forge.startup')
    checks_passed = True

    logger.info("Performing startup health checks...")

    # Check 1: Supabase client
    if config['dev_mode']:
        logger.info("- Supabase skipped (DEV_MODE)")
    else:
        try:
            from supabase import create_client
            create_client(config['supabase']['url'], config['supabase']['anon_key'])
            logger.info("+ Supabase client created")
        except Exception as e:
            logger.error(f"x Supabase client failed: {e}")
            checks_passed = False

    # Check 2: AI gateway reachability
    if config['gateway']['api_key']:
        import httpx
        from aios_forge.config import get_gateway_config
        base_url = config['gateway']['url'] or get_gateway_config().get('base_url')
        try:
            response = httpx.get(
                f"{base_url.rstrip('/')}/models",
                headers={"Authorization": f"Bearer {config['gateway']['api_key']}"},
                timeout=10.0
            )
            if response.status_code == 200:
                logger.info("+ AI gateway key valid")
            else:
                logger.warning(f"! AI gateway returned status {response.status_code}")
        except httpx.HTTPError as e:
            logger.warning(f"! Could not reach the AI gateway: {e}")
    else:
        logger.info("- AI gateway not configured (chat and compliance disabled)")

    # Check 3: Storage directory permissions
    try:
        storage_dir = PROJECT_ROOT / 'storage'
        storage_dir.mkdir(parents=True, exist_ok=True)
        test_file = storage_dir / '.write_test'
        test_file.touch()
        test_file.unlink()
        logger.info("+ Storage directory writable")
    except OSError as e:
        logger.error(f"x Storage directory not writable: {e}")
        checks_passed = False

    if checks_passed:
        logger.info("All startup checks passed")
    else:
        logger.error("Some startup checks failed")

    return checks_passed


# =============================================================================
# Offline Export
# =============================================================================

def load_model_file(path: Path) -> dict:
    """
    Load a project model from YAML or JSON.

    The model has a project mapping and lists of agents, squads and
    workflows. An agent may be given as a native catalog slug. When no
    workflows are listed, the defaults for the pattern are generated.
    """
    from aios_forge.catalog import agent_from_native
    from aios_forge.models import Agent, Project, ProjectWorkflow, Squad
    from aios_forge.workflows import generate_default_workflows

    with open(path, 'r', encoding='utf-8') as f:
        if path.suffix == '.json':
            data = json.load(f)
        else:
            data = yaml.safe_load(f)
    data = data or {}

    project = Project.from_dict(data.get('project') or {})
    agents = []
    for entry in data.get('agents') or []:
        if isinstance(entry, str):
            agents.append(agent_from_native(entry))
        elif entry.get('native'):
            agents.append(agent_from_native(entry['native']))
        else:
            agents.append(Agent.from_dict(entry))
    squads = [Squad.from_dict(s) for s in data.get('squads') or []]
    workflows = [ProjectWorkflow.from_dict(w) for w in data.get('workflows') or []]
    if not workflows:
        workflows = generate_default_workflows(project.orchestration_pattern, agents, squads)

    return {'project': project, 'agents': agents, 'squads': squads, 'workflows': workflows}


def export_package(model_path: str, out: str = None, directory: str = None) -> Path:
    """Generate a package from a model file into a ZIP or a directory."""
    from aios_forge.export import archive_name, build_zip, write_files
    from aios_forge.generator import generate_package

    logger = logging.getLogger('aios_forge.export')
    model = load_model_file(Path(model_path))
    files = generate_package(
        model['project'], model['agents'], model['squads'], model['workflows'],
        generated_at=datetime.now(timezone.utc).date()
    )

    if directory:
        written = write_files(files, directory)
        logger.info(f"Wrote {len(written)} files to {directory}")
        return Path(directory)

    target = Path(out or archive_name(model['project'].name))
    target.write_bytes(build_zip(files))
    logger.info(f"Wrote {len(files)} files to {target}")
    return target


# =============================================================================
# Main Entry Point
# =============================================================================

def main():
    """
    Main entry point for the application.

    Initializes logging, validates configuration, performs health checks,
    and starts the Flask development server.

    For production, use a WSGI server like Gunicorn:
        gunicorn --bind 0.0.0.0:5000 --workers 4 "run:create_application()"
    """
    logger = setup_logging()

    logger.info("=" * 60)
    logger.info("AIOS Forge Starting")
    logger.info("=" * 60)
    logger.info(f"Python version: {sys.version}")
    logger.info(f"Project root: {PROJECT_ROOT}")
    logger.info(f"Start time: {datetime.now(timezone.utc).isoformat()}")

    config = validate_configuration()

    setup_signal_handlers(logger)
    atexit.register(cleanup)

    if not perform_startup_checks(config):
        if config['flask']['env'] == 'production':
            logger.error("Startup checks failed in production mode, exiting")
            sys.exit(1)
        else:
            logger.warning("Startup checks failed, continuing in development mode")

    app = create_application()

    host = config['flask']['host']
    port = config['flask']['port']
    debug = config['flask']['debug']

    logger.info("-" * 60)
    logger.info(f"Starting Flask server on http://{host}:{port}")
    logger.info(f"Debug mode: {debug}")
    logger.info("-" * 60)

    try:
        app.run(
            host=host,
            port=port,
            debug=debug,
            use_reloader=debug,
            threaded=True
        )
    except OSError as e:
        if "Address already in use" in str(e):
            logger.error(f"Port {port} is already in use")
        else:
            logger.exception(f"Failed to start server: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")
    finally:
        logger.info("Application shutdown complete")


def run_development():
    """Run the application in development mode with the mock backend."""
    os.environ.setdefault('FLASK_ENV', 'development')
    os.environ.setdefault('FLASK_DEBUG', 'true')
    os.environ.setdefault('LOG_LEVEL', 'DEBUG')
    os.environ.setdefault('DEV_MODE', 'true')

    main()


def run_production():
    """
    Run the application in production mode.

    Note: For actual production, use Gunicorn or another WSGI server:
        gunicorn --bind 0.0.0.0:5000 --workers 4 "run:create_application()"
    """
    os.environ.setdefault('FLASK_ENV', 'production')
    os.environ.setdefault('FLASK_DEBUG', 'false')
    os.environ.setdefault('LOG_LEVEL', 'INFO')

    main()


# =============================================================================
# CLI Interface
# =============================================================================

def cli():
    """
    Command-line interface for the application.

    Commands:
        run         Start the server (default)
        dev         Start in development mode
        prod        Start in production mode
        check       Run configuration checks only
        export      Generate a package from a model file
        version     Show version information
    """
    import argparse

    parser = argparse.ArgumentParser(
        description='AIOS Forge',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python run.py                              Start the server
    python run.py dev                          Start in development mode
    python run.py check                        Validate configuration
    python run.py --port 8080                  Start on port 8080
    python run.py export project.yaml          Write <name>.zip
    python run.py export project.yaml --dir out
        """
    )

    parser.add_argument(
        'command',
        nargs='?',
        default='run',
        choices=['run', 'dev', 'prod', 'check', 'export', 'version'],
        help='Command to execute (default: run)'
    )
    parser.add_argument('model', nargs='?', help='Project model file (YAML or JSON) for export')
    parser.add_argument('--out', default=None, help='ZIP file to write (export)')
    parser.add_argument('--dir', default=None, help='Directory to write files into (export)')
    parser.add_argument('--host', default=None, help='Host to bind to')
    parser.add_argument('--port', type=int, default=None, help='Port to bind to')
    parser.add_argument('--debug', action='store_true', help='Enable debug mode')

    args = parser.parse_args()

    if args.host:
        os.environ['FLASK_HOST'] = args.host
    if args.port:
        os.environ['FLASK_PORT'] = str(args.port)
    if args.debug:
        os.environ['FLASK_DEBUG'] = 'true'

    if args.command == 'run':
        main()
    elif args.command == 'dev':
        run_development()
    elif args.command == 'prod':
        run_production()
    elif args.command == 'check':
        setup_logging()
        config = validate_configuration()
        perform_startup_checks(config)
    elif args.command == 'export':
        if not args.model:
            parser.error("export requires a model file")
        logging.basicConfig(level=os.getenv('LOG_LEVEL', 'INFO').upper())
        target = export_package(args.model, out=args.out, directory=args.dir)
        print(target)
    elif args.command == 'version':
        print(f"AIOS Forge v{VERSION}")
        print(f"Python {sys.version}")


if __name__ == '__main__':
    cli()
