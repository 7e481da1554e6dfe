"""
API Tests for AIOS Forge
"""

import io
import zipfile

import pytest

from aios_forge.llm_client import LLMError, RateLimitError, PaymentRequiredError
from aios_forge.assistant import CHAT_ERROR_MESSAGE


@pytest.fixture
def app(tmp_path, monkeypatch, mock_llm_client):
    """Create Flask test application backed by the mock database."""
    monkeypatch.delenv('AI_GATEWAY_API_KEY', raising=False)
    from app import create_app
    app = create_app({
        'TESTING': True,
        'DEV_MODE': True,
        'MOCK_DB_FILE': str(tmp_path / 'mock_db.json')
    })
    app.llm_client = mock_llm_client
    yield app


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def auth_headers():
    """Authorization headers for the seeded dev user."""
    return {'Authorization': 'Bearer test-token'}


@pytest.fixture
def session(client, auth_headers):
    """Create a wizard session and return a helper bound to it."""
    response = client.post('/api/sessions', headers=auth_headers)
    assert response.status_code == 201
    session_id = response.get_json()['session_id']

    def call(method, path='', **kwargs):
        return client.open(f'/api/sessions/{session_id}{path}', method=method, headers=auth_headers, **kwargs)

    call.id = session_id
    return call


def build_project(session):
    """Walk a session to the review step with one squad."""
    session('POST', '/next')
    session('PATCH', '/project', json={'name': 'Content Studio', 'domain': 'content'})
    session('POST', '/next')
    session('POST', '/agents', json={'native': 'pm'})
    session('POST', '/agents', json={'native': 'dev'})
    session('POST', '/next')
    session('POST', '/squads', json={'name': 'Core Team', 'agent_ids': ['pm', 'dev']})
    session('POST', '/workflows/auto')
    session('POST', '/next')
    return session('POST', '/next')


class TestHealthEndpoint:
    """Tests for health check endpoint."""

    def test_health_returns_200(self, client):
        response = client.get('/health')
        assert response.status_code == 200
        assert response.get_json()['status'] == 'healthy'


class TestAuthentication:
    """Tests for authentication."""

    def test_missing_auth_header(self, client):
        response = client.post('/api/sessions')
        assert response.status_code == 401
        assert response.get_json()['code'] == 'AUTH_MISSING'

    def test_invalid_format(self, client):
        response = client.get('/api/projects', headers={'Authorization': 'Token abc'})
        assert response.get_json()['code'] == 'AUTH_INVALID_FORMAT'

    def test_invalid_token(self, client):
        response = client.get('/api/projects', headers={'Authorization': 'Bearer nope'})
        assert response.status_code == 401
        assert response.get_json()['code'] == 'AUTH_INVALID_TOKEN'

    def test_dev_signup_and_login(self, client):
        response = client.post('/api/auth/signup', json={'email': 'new@localhost', 'password': 'pw'})
        assert response.status_code == 201
        token = response.get_json()['access_token']
        assert token.startswith('local-')

        again = client.post('/api/auth/signup', json={'email': 'new@localhost', 'password': 'pw'})
        assert again.status_code == 400

        login = client.post('/api/auth/login', json={'email': 'test@localhost', 'password': 'password123'})
        assert login.status_code == 200
        bad = client.post('/api/auth/login', json={'email': 'test@localhost', 'password': 'wrong'})
        assert bad.status_code == 401

        projects = client.get('/api/projects', headers={'Authorization': f'Bearer {token}'})
        assert projects.status_code == 200


class TestCatalog:

    def test_agents_and_patterns_are_public(self, client):
        agents = client.get('/api/catalog/agents').get_json()['agents']
        assert any(a['slug'] == 'aios-master' for a in agents)
        patterns = client.get('/api/catalog/patterns').get_json()
        assert len(patterns['patterns']) == 6
        assert 'software' in patterns['domains']


class TestWizardSession:

    def test_new_session(self, session):
        data = session('GET').get_json()
        assert data['session_id'] == session.id
        assert data['state']['current_step'] == 'discovery'
        assert data['can_proceed'] is True

    def test_unknown_session(self, client, auth_headers):
        response = client.get('/api/sessions/missing', headers=auth_headers)
        assert response.status_code == 404
        assert response.get_json()['code'] == 'NOT_FOUND'

    def test_reset_and_clear_messages(self, session):
        session('POST', '/next')
        assert session('GET').get_json()['state']['messages']
        cleared = session('DELETE', '/messages').get_json()
        assert cleared['state']['messages'] == []

        reset = session('POST', '/reset').get_json()
        assert reset['session_id'] == session.id
        assert reset['state']['current_step'] == 'discovery'
        assert [s['id'] for s in reset['steps']][-1] == 'generation'

    def test_blocked_next_returns_409(self, session):
        session('POST', '/next')
        response = session('POST', '/next')
        assert response.status_code == 409
        assert response.get_json() == {'error': 'Set a name for the project', 'code': 'STEP_BLOCKED'}

    def test_state_persists_between_requests(self, session):
        session('POST', '/next')
        session('PATCH', '/project', json={'name': 'Studio'})
        data = session('GET').get_json()
        assert data['state']['project']['name'] == 'Studio'
        assert data['step_index'] == 1

    def test_validation_errors(self, session):
        response = session('PATCH', '/project', json={'orchestration_pattern': 'NOPE'})
        assert response.status_code == 400
        assert response.get_json()['code'] == 'VALIDATION_ERROR'

        response = session('POST', '/agents', json={'name': 'Nameless'})
        assert response.status_code == 400

        response = session('POST', '/goto', json={'step': 'review'})
        assert response.status_code == 400

    def test_agents_squads_and_members(self, session):
        session('POST', '/agents/recommended')
        session('POST', '/agents', json={'name': 'Copy Editor', 'role': 'Edits drafts'})
        state = session('GET').get_json()['state']
        slugs = [a['slug'] for a in state['agents']]
        assert 'copy-editor' in slugs
        assert 'aios-orchestrator' in slugs

        session('POST', '/squads', json={'name': 'Editors'})
        session('POST', '/squads/editors/members/copy-editor')
        state = session('GET').get_json()['state']
        assert state['squads'][0]['agent_ids'] == ['copy-editor']

        session('DELETE', '/agents/copy-editor')
        state = session('GET').get_json()['state']
        assert state['squads'][0]['agent_ids'] == []

    def test_patch_agent_fields(self, session):
        session('POST', '/agents', json={'native': 'dev'})
        response = session('PATCH', '/agents/dev', json={'llmModel': 'gpt-4o-mini'})
        assert response.status_code == 200
        assert response.get_json()['state']['agents'][0]['llm_model'] == 'gpt-4o-mini'

        response = session('PATCH', '/agents/dev', json={'bogus_field': 1})
        assert response.status_code == 400
        assert response.get_json()['code'] == 'VALIDATION_ERROR'

    def test_duplicate_workflow_slug_rejected(self, session):
        session('POST', '/workflows', json={'id': 'one', 'name': 'Review', 'slug': 'review'})
        response = session('POST', '/workflows', json={'id': 'two', 'name': 'Review again', 'slug': 'review'})
        assert response.status_code == 400
        assert len(session('GET').get_json()['state']['workflows']) == 1

    def test_workflow_steps(self, session):
        session('POST', '/agents', json={'native': 'dev'})
        created = session('POST', '/workflows', json={'id': 'wf', 'name': 'Flow', 'slug': 'flow'})
        assert created.status_code == 200
        session('POST', '/workflows/wf/steps', json={'id': 's1', 'name': 'Build', 'agent_slug': 'dev'})
        response = session('POST', '/workflows/wf/steps', json={
            'id': 's2', 'name': 'Ship', 'agent_slug': 'dev', 'depends_on': ['missing']
        })
        assert response.status_code == 400

        session('PATCH', '/workflows/wf/steps/s1', json={'name': 'Compile'})
        workflow = session('GET').get_json()['state']['workflows'][0]
        assert workflow['steps'][0]['name'] == 'Compile'

        session('DELETE', '/workflows/wf')
        assert session('GET').get_json()['state']['workflows'] == []

    def test_integrations(self, session):
        session('PUT', '/integrations/NOTION', json={'config': {'workspace': 'docs'}})
        state = session('GET').get_json()['state']
        assert state['integrations'][0]['type'] == 'NOTION'
        assert session('PUT', '/integrations/FAX').status_code == 400
        session('DELETE', '/integrations/NOTION')
        assert session('GET').get_json()['state']['integrations'] == []

    def test_diagram_connect(self, session):
        session('POST', '/agents', json={'native': 'dev'})
        session('POST', '/squads', json={'slug': 'core', 'name': 'Core'})
        session('POST', '/diagram/connect', json={'source': 'agent-dev', 'target': 'squad-core'})
        diagram = session('GET', '/diagram').get_json()
        assert any(e['kind'] == 'membership' for e in diagram['edges'])


class TestChatAndCompliance:

    def test_chat_appends_reply(self, session, mock_llm_client):
        response = session('POST', '/chat', json={'content': 'Which pattern?'})
        assert response.status_code == 200
        messages = response.get_json()['state']['messages']
        assert messages[-2] == {'role': 'user', 'content': 'Which pattern?'}
        assert messages[-1]['content'] == 'Try the Task-First pattern.'

    def test_chat_requires_content(self, session):
        assert session('POST', '/chat', json={'content': '  '}).status_code == 400

    @pytest.mark.parametrize('error,status', [
        (RateLimitError('slow down'), 429),
        (PaymentRequiredError('no credits'), 402),
        (LLMError('boom'), 502),
    ])
    def test_chat_failure_appends_apology(self, session, mock_llm_client, error, status):
        mock_llm_client.complete.side_effect = error
        response = session('POST', '/chat', json={'content': 'hello'})
        assert response.status_code == status
        messages = session('GET').get_json()['state']['messages']
        assert messages[-1] == {'role': 'assistant', 'content': CHAT_ERROR_MESSAGE}

    def test_chat_without_gateway(self, app, session):
        app.llm_client = None
        response = session('POST', '/chat', json={'content': 'hello'})
        assert response.status_code == 502

    def test_compliance_updates_files(self, session):
        build_project(session)
        data = session('POST', '/compliance').get_json()
        assert data['compliance'] == {'total': 2, 'passed': 1, 'warning': 1, 'failed': 0}

        files = {f['path']: f for f in session('GET', '/files').get_json()['files']}
        assert files['aios.config.yaml']['compliance_status'] == 'passed'
        assert files['CLAUDE.md']['compliance_status'] == 'pending'


class TestOutputAndProjects:

    def test_files_preview(self, session):
        build_project(session)
        data = session('GET', '/files').get_json()
        paths = [f['path'] for f in data['files']]
        assert 'agents/pm.md' in paths
        assert 'squads/core-team/squad.yaml' in paths
        assert 'workflows/workflow-core-team.yaml' in paths

    def test_session_export_zip(self, session):
        build_project(session)
        response = session('GET', '/export.zip')
        assert response.status_code == 200
        assert response.mimetype == 'application/zip'
        assert 'content-studio.zip' in response.headers['Content-Disposition']
        with zipfile.ZipFile(io.BytesIO(response.data)) as archive:
            assert 'aios.config.yaml' in archive.namelist()

    def test_save_list_get_delete(self, session, client, auth_headers):
        build_project(session)
        response = session('POST', '/save')
        assert response.status_code == 201
        project_id = response.get_json()['project_id']

        projects = client.get('/api/projects', headers=auth_headers).get_json()
        assert projects['count'] == 1
        assert projects['projects'][0]['name'] == 'Content Studio'

        bundle = client.get(f'/api/projects/{project_id}', headers=auth_headers).get_json()
        assert [a['slug'] for a in bundle['agents']] == ['pm', 'dev']
        assert bundle['workflows'][0]['slug'] == 'workflow-core-team'
        assert bundle['files']

        export = client.get(f'/api/projects/{project_id}/export.zip', headers=auth_headers)
        assert export.status_code == 200

        deleted = client.delete(f'/api/projects/{project_id}', headers=auth_headers)
        assert deleted.get_json()['deleted'] is True
        missing = client.get(f'/api/projects/{project_id}', headers=auth_headers)
        assert missing.status_code == 404

    def test_save_requires_name(self, session):
        assert session('POST', '/save').status_code == 400

    def test_projects_are_scoped_to_user(self, session, client, auth_headers):
        build_project(session)
        project_id = session('POST', '/save').get_json()['project_id']

        token = client.post('/api/auth/signup', json={
            'email': 'other@localhost', 'password': 'pw'
        }).get_json()['access_token']
        other = {'Authorization': f'Bearer {token}'}
        assert client.get(f'/api/projects/{project_id}', headers=other).status_code == 404
        assert client.get(f'/api/sessions/{session.id}', headers=other).status_code == 404
