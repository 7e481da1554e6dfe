"""
Hosted Backend - Supabase persistence for wizard sessions and saved projects
"""

import os
import json
import uuid
import logging
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List, Sequence

from aios_forge.config import get_config
from aios_forge.models import GeneratedFile
from aios_forge.records import (
    ProjectBundle, project_row, agent_row, squad_row, integration_row, file_row, session_row,
    project_from_rows
)
from aios_forge.wizard import WizardState

logger = logging.getLogger(__name__)

PROJECT_SUMMARY_COLUMNS = 'id,name,description,domain,orchestration_pattern,created_at,updated_at'


class BackendError(Exception):
    """Raised when a write to the backend fails."""
    pass


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _file_contents(files: Sequence[GeneratedFile]) -> Dict[str, str]:
    return {f.path: f.content for f in files}


class SupabaseBackend:
    """Supabase-backed persistence."""

    def __init__(self, url: str, anon_key: str, service_role_key: str):
        self.url = url
        self.anon_key = anon_key
        self.service_role_key = service_role_key

        try:
            from supabase import create_client, Client
            self.client: Client = create_client(url, anon_key)
            self.admin_client: Client = create_client(url, service_role_key)
            logger.info("Supabase backend client initialized")
        except Exception as e:
            logger.error(f"Failed to initialize Supabase client: {e}")
            self.client = None
            self.admin_client = None

    def _require_admin(self):
        if not self.admin_client:
            raise BackendError("Supabase client not initialized")
        return self.admin_client

    def verify_token(self, token: str) -> Optional[Dict[str, Any]]:
        """Verify a JWT token and return the decoded payload."""
        try:
            if not self.client:
                return None

            user = self.client.auth.get_user(token)
            if user and user.user:
                return {
                    'sub': user.user.id,
                    'email': user.user.email,
                    'role': user.user.role or 'authenticated'
                }
            return None
        except Exception as e:
            logger.error(f"Token verification error: {e}")
            return None

    # -- wizard sessions ------------------------------------------------------

    def create_session(self, user_id: str, state: WizardState) -> Dict[str, Any]:
        client = self._require_admin()
        try:
            response = client.table('wizard_sessions').insert(session_row(user_id, state)).execute()
        except Exception as e:
            logger.error(f"Error creating wizard session: {e}")
            raise BackendError(f"Could not create wizard session: {e}") from e
        if not response.data:
            raise BackendError("Wizard session insert returned no row")
        return response.data[0]

    def get_session(self, session_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        try:
            if not self.admin_client:
                return None
            response = (self.admin_client.table('wizard_sessions').select('*')
                        .eq('id', session_id).eq('user_id', user_id).single().execute())
            return response.data if response.data else None
        except Exception as e:
            logger.error(f"Error fetching wizard session {session_id}: {e}")
            return None

    def update_session(self, session_id: str, user_id: str, state: WizardState,
                       project_id: str = None) -> None:
        client = self._require_admin()
        updates = session_row(user_id, state, project_id)
        updates['updated_at'] = _now()
        if project_id is None:
            updates.pop('project_id')
        try:
            client.table('wizard_sessions').update(updates).eq('id', session_id).eq('user_id', user_id).execute()
        except Exception as e:
            logger.error(f"Error updating wizard session {session_id}: {e}")
            raise BackendError(f"Could not update wizard session: {e}") from e

    # -- projects -------------------------------------------------------------

    def save_project(self, user_id: str, state: WizardState, files: Sequence[GeneratedFile]) -> str:
        """
        Insert the project row, then its agents, squads, integrations and files.

        Rows are inserted one at a time with no rollback: a failure part way
        leaves the rows written so far in place.
        """
        client = self._require_admin()
        contents = _file_contents(files)
        try:
            response = client.table('projects').insert(
                project_row(user_id, state.project, state.workflows)
            ).execute()
            project_id = response.data[0]['id']
        except Exception as e:
            logger.error(f"Error saving project: {e}")
            raise BackendError(f"Could not save project: {e}") from e

        try:
            for agent in state.agents:
                client.table('agents').insert(
                    agent_row(project_id, agent, contents.get(f"agents/{agent.slug}.md", ''))
                ).execute()
            for squad in state.squads:
                client.table('squads').insert(
                    squad_row(project_id, squad, contents.get(f"squads/{squad.slug}/squad.yaml", ''))
                ).execute()
            for integration in state.integrations:
                client.table('integrations').insert(integration_row(project_id, integration)).execute()
            for generated in files:
                client.table('generated_files').insert(file_row(project_id, generated)).execute()
        except Exception as e:
            logger.error(f"Error saving rows for project {project_id}, partial project left in place: {e}")
            raise BackendError(f"Could not save project {project_id}: {e}") from e

        logger.info(f"Saved project {project_id} for user {user_id}")
        return project_id

    def list_projects(self, user_id: str) -> List[Dict[str, Any]]:
        try:
            if not self.admin_client:
                return []
            response = (self.admin_client.table('projects').select(PROJECT_SUMMARY_COLUMNS)
                        .eq('user_id', user_id).order('created_at', desc=True).execute())
            return response.data if response.data else []
        except Exception as e:
            logger.error(f"Error listing projects: {e}")
            return []

    def get_project(self, project_id: str, user_id: str) -> Optional[ProjectBundle]:
        try:
            if not self.admin_client:
                return None
            project = (self.admin_client.table('projects').select('*')
                       .eq('id', project_id).eq('user_id', user_id).single().execute())
            if not project.data:
                return None

            def rows(table: str) -> List[Dict[str, Any]]:
                response = (self.admin_client.table(table).select('*')
                            .eq('project_id', project_id).order('created_at').execute())
                return response.data or []

            return project_from_rows(
                project.data,
                agents=rows('agents'),
                squads=rows('squads'),
                files=rows('generated_files'),
                integrations=rows('integrations'),
            )
        except Exception as e:
            logger.error(f"Error fetching project {project_id}: {e}")
            return None

    def delete_project(self, project_id: str, user_id: str) -> bool:
        client = self._require_admin()
        try:
            response = client.table('projects').delete().eq('id', project_id).eq('user_id', user_id).execute()
        except Exception as e:
            logger.error(f"Error deleting project {project_id}: {e}")
            raise BackendError(f"Could not delete project: {e}") from e
        return bool(response.data)


class MockSupabaseBackend:
    """Mock Supabase backend for development with file persistence."""

    TABLES = ('wizard_sessions', 'projects', 'agents', 'squads', 'integrations', 'generated_files')

    def __init__(self, db_file: str = None):
        self.db_file = db_file or get_config().get('storage', {}).get('mock_db', 'storage/mock_db.json')
        logger.info("Mock Supabase backend initialized (DEV MODE)")
        self.users: Dict[str, Dict[str, Any]] = {}
        self.tokens: Dict[str, Dict[str, Any]] = {}
        self.tables: Dict[str, List[Dict[str, Any]]] = {t: [] for t in self.TABLES}

        self._load()

        # Ensure at least one test user
        if not self.users:
            self.users['test-user-id'] = {
                'id': 'test-user-id',
                'email': 'test@localhost',
                'password': 'password123',
                'role': 'authenticated',
                'user_metadata': {'name': 'Dev User'}
            }
            self._save()

    def _load(self):
        """Load data from JSON file."""
        if os.path.exists(self.db_file):
            try:
                with open(self.db_file, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                self.users = data.get('users', {})
                for table in self.TABLES:
                    self.tables[table] = data.get(table, [])
                logger.info(f"Loaded mock DB from {self.db_file}")
            except (OSError, ValueError) as e:
                logger.error(f"Failed to load mock DB: {e}")

    def _save(self):
        """Save data to JSON file."""
        data = {'users': self.users, **self.tables}
        try:
            directory = os.path.dirname(self.db_file)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.db_file, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, default=str)
        except OSError as e:
            logger.error(f"Failed to save mock DB: {e}")
            raise BackendError(f"Could not write mock DB: {e}") from e

    def _insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        now = _now()
        stored = {'id': str(uuid.uuid4()), 'created_at': now, 'updated_at': now, **row}
        self.tables[table].append(stored)
        return stored

    def _select(self, table: str, **filters) -> List[Dict[str, Any]]:
        return [r for r in self.tables[table] if all(r.get(k) == v for k, v in filters.items())]

    def verify_token(self, token: str) -> Optional[Dict[str, Any]]:
        """Mock token verification."""
        logger.debug(f"Verifying token: {token[:10]}...")

        if token in self.tokens:
            return self.tokens[token]

        if token == 'test-token':
            return {
                'sub': 'test-user-id',
                'email': 'dev@example.com',
                'role': 'authenticated'
            }

        if token.startswith('local-'):
            user_id = token[len('local-'):]
            user = self.users.get(user_id)
            if not user:
                logger.debug(f"User {user_id} not found in memory, reloading DB...")
                self._load()
                user = self.users.get(user_id)
            if user:
                return {
                    'sub': user['id'],
                    'email': user['email'],
                    'role': user.get('role', 'authenticated')
                }
            logger.warning(f"User {user_id} not found after reload.")

        logger.warning("Token verification failed")
        return None

    def login(self, email: str, password: str) -> Optional[Dict[str, Any]]:
        """Mock Login."""
        logger.debug(f"Attempting login for {email}")
        for user in self.users.values():
            if user['email'] == email:
                if user.get('password') != password:
                    logger.warning(f"Invalid password for {email}")
                    return None
                token = f"local-{user['id']}"
                self.tokens[token] = {
                    'sub': user['id'],
                    'email': user['email'],
                    'role': user.get('role', 'authenticated')
                }
                logger.info(f"Login successful for {email}")
                public = {k: v for k, v in user.items() if k != 'password'}
                return {'access_token': token, 'token_type': 'bearer', 'user': public}
        logger.warning(f"User {email} not found during login")
        return None

    def signup(self, email: str, password: str) -> Optional[Dict[str, Any]]:
        """Mock Signup."""
        logger.debug(f"Attempting signup for {email}")
        if any(u['email'] == email for u in self.users.values()):
            logger.warning(f"Signup failed: User {email} already exists")
            return {'error': 'User already exists'}

        user_id = str(uuid.uuid4())
        self.users[user_id] = {
            'id': user_id,
            'email': email,
            'password': password,
            'role': 'authenticated',
            'created_at': _now(),
            'user_metadata': {}
        }
        self._save()
        logger.info(f"Signup successful for {email} (id: {user_id})")
        return self.login(email, password)

    def create_session(self, user_id: str, state: WizardState) -> Dict[str, Any]:
        row = self._insert('wizard_sessions', session_row(user_id, state))
        self._save()
        logger.debug(f"[MOCK] Created wizard session {row['id']}")
        return row

    def get_session(self, session_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        rows = self._select('wizard_sessions', id=session_id, user_id=user_id)
        return rows[0] if rows else None

    def update_session(self, session_id: str, user_id: str, state: WizardState,
                       project_id: str = None) -> None:
        row = self.get_session(session_id, user_id)
        if row is None:
            raise BackendError(f"Wizard session not found: {session_id}")
        updates = session_row(user_id, state, project_id)
        if project_id is None:
            updates.pop('project_id')
        row.update(updates, updated_at=_now())
        self._save()

    def save_project(self, user_id: str, state: WizardState, files: Sequence[GeneratedFile]) -> str:
        contents = _file_contents(files)
        project = self._insert('projects', project_row(user_id, state.project, state.workflows))
        project_id = project['id']
        for agent in state.agents:
            self._insert('agents', agent_row(project_id, agent, contents.get(f"agents/{agent.slug}.md", '')))
        for squad in state.squads:
            self._insert('squads', squad_row(project_id, squad, contents.get(f"squads/{squad.slug}/squad.yaml", '')))
        for integration in state.integrations:
            self._insert('integrations', integration_row(project_id, integration))
        for generated in files:
            self._insert('generated_files', file_row(project_id, generated))
        self._save()
        logger.debug(f"[MOCK] Saved project {project_id}")
        return project_id

    def list_projects(self, user_id: str) -> List[Dict[str, Any]]:
        columns = PROJECT_SUMMARY_COLUMNS.split(',')
        rows = sorted(self._select('projects', user_id=user_id), key=lambda r: r['created_at'], reverse=True)
        return [{c: r.get(c) for c in columns} for r in rows]

    def get_project(self, project_id: str, user_id: str) -> Optional[ProjectBundle]:
        rows = self._select('projects', id=project_id, user_id=user_id)
        if not rows:
            return None
        return project_from_rows(
            rows[0],
            agents=self._select('agents', project_id=project_id),
            squads=self._select('squads', project_id=project_id),
            files=self._select('generated_files', project_id=project_id),
            integrations=self._select('integrations', project_id=project_id),
        )

    def delete_project(self, project_id: str, user_id: str) -> bool:
        if not self._select('projects', id=project_id, user_id=user_id):
            return False
        self.tables['projects'] = [r for r in self.tables['projects'] if r['id'] != project_id]
        for table in ('agents', 'squads', 'integrations', 'generated_files'):
            self.tables[table] = [r for r in self.tables[table] if r.get('project_id') != project_id]
        self._save()
        return True
