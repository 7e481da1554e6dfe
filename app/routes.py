"""
Flask Routes - Health, Catalog, Saved Projects and Dev Auth
"""

import io
import logging
from datetime import datetime, timezone

from flask import Blueprint, request, jsonify, g, current_app, send_file

from aios_forge.catalog import NATIVE_AGENTS, ORCHESTRATION_PATTERNS, DOMAINS
from aios_forge.export import archive_name, build_zip
from aios_forge.generator import generate_package
from app.auth import require_auth
from app.backend import BackendError, MockSupabaseBackend

logger = logging.getLogger(__name__)

main_bp = Blueprint('main', __name__)
api_bp = Blueprint('api', __name__)

VERSION = '1.0.0'


def error_response(message: str, code: str, status: int):
    return jsonify({'error': message, 'code': code}), status


def zip_response(files, project_name: str):
    return send_file(
        io.BytesIO(build_zip(files)),
        mimetype='application/zip',
        as_attachment=True,
        download_name=archive_name(project_name)
    )


@main_bp.route('/health')
def health():
    """Health check endpoint."""
    return jsonify({
        'status': 'healthy',
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'version': VERSION,
        'gateway': current_app.llm_client is not None
    })


# =============================================================================
# Catalog
# =============================================================================

@api_bp.route('/catalog/agents', methods=['GET'])
def catalog_agents():
    """List the native agents."""
    return jsonify({
        'agents': [
            {
                'slug': a.slug,
                'name': a.name,
                'category': a.category.value,
                'role': a.role,
                'description': a.description,
                'default_model': a.default_model,
                'default_commands': list(a.default_commands),
                'compatible_patterns': [p.value for p in a.compatible_patterns]
            }
            for a in NATIVE_AGENTS
        ]
    })


@api_bp.route('/catalog/patterns', methods=['GET'])
def catalog_patterns():
    """List the orchestration patterns and domains."""
    return jsonify({
        'patterns': [
            {
                'id': p.id.value,
                'name': p.name,
                'description': p.description,
                'use_cases': list(p.use_cases),
                'suggested_agents': list(p.suggested_agents),
                'domains': list(p.domains)
            }
            for p in ORCHESTRATION_PATTERNS
        ],
        'domains': list(DOMAINS)
    })


# =============================================================================
# Saved projects
# =============================================================================

@api_bp.route('/projects', methods=['GET'])
@require_auth
def list_projects():
    """List the user's saved projects."""
    projects = current_app.backend.list_projects(g.user_id)
    return jsonify({'projects': projects, 'count': len(projects)})


@api_bp.route('/projects/<project_id>', methods=['GET'])
@require_auth
def get_project(project_id: str):
    """Get a saved project with its agents, squads, workflows and files."""
    bundle = current_app.backend.get_project(project_id, g.user_id)
    if not bundle:
        return error_response('Project not found', 'NOT_FOUND', 404)
    return jsonify(bundle.to_dict())


@api_bp.route('/projects/<project_id>', methods=['DELETE'])
@require_auth
def delete_project(project_id: str):
    """Delete a saved project."""
    try:
        deleted = current_app.backend.delete_project(project_id, g.user_id)
    except BackendError as e:
        return error_response(str(e), 'INTERNAL_ERROR', 500)
    if not deleted:
        return error_response('Project not found', 'NOT_FOUND', 404)
    logger.info(f"Deleted project {project_id}")
    return jsonify({'deleted': True, 'project_id': project_id})


@api_bp.route('/projects/<project_id>/export.zip', methods=['GET'])
@require_auth
def export_project(project_id: str):
    """Download a saved project as a ZIP archive."""
    bundle = current_app.backend.get_project(project_id, g.user_id)
    if not bundle:
        return error_response('Project not found', 'NOT_FOUND', 404)

    files = bundle.files
    if not files:
        files = generate_package(
            bundle.project, bundle.agents, bundle.squads, bundle.workflows,
            compliance_results=bundle.compliance_results()
        )
    return zip_response(files, bundle.project.name)


# =============================================================================
# Dev auth
# =============================================================================

@api_bp.route('/auth/login', methods=['POST'])
def login():
    """Local Dev Login."""
    if not isinstance(current_app.backend, MockSupabaseBackend):
        return error_response('Endpoint unavailable in production', 'NOT_FOUND', 404)

    data = request.get_json(silent=True) or {}
    result = current_app.backend.login(data.get('email', ''), data.get('password', ''))
    if result:
        return jsonify(result)
    return error_response('Invalid credentials', 'AUTH_INVALID_CREDENTIALS', 401)


@api_bp.route('/auth/signup', methods=['POST'])
def signup():
    """Local Dev Signup."""
    if not isinstance(current_app.backend, MockSupabaseBackend):
        return error_response('Endpoint unavailable in production', 'NOT_FOUND', 404)

    data = request.get_json(silent=True) or {}
    email = data.get('email', '').strip()
    password = data.get('password', '')
    if not email or not password:
        return error_response('Email and password are required', 'VALIDATION_ERROR', 400)

    result = current_app.backend.signup(email, password)
    if result and 'error' not in result:
        return jsonify(result), 201
    return error_response((result or {}).get('error', 'Signup failed'), 'VALIDATION_ERROR', 400)
