"""
Tests for ZIP export and persistence records
"""

import io
import zipfile

import pytest

from aios_forge import wizard
from aios_forge.export import archive_name, build_zip, write_files
from aios_forge.generator import generate_package
from aios_forge.models import GeneratedFile, FileType, ComplianceStatus, IntegrationType
from aios_forge.records import (
    project_row, agent_row, session_row, state_from_session_row, project_from_rows, file_row
)
from aios_forge.wizard import WizardStep
from aios_forge.workflows import generate_default_workflows


class TestExport:

    def test_archive_name(self):
        assert archive_name('My Project') == 'my-project.zip'
        assert archive_name('') == 'meu-aios.zip'

    def test_zip_contains_files_in_order(self, project, agents, squads):
        files = generate_package(project, agents, squads)
        with zipfile.ZipFile(io.BytesIO(build_zip(files))) as archive:
            assert archive.namelist() == [f.path for f in files]
            assert archive.read('aios.config.yaml').decode('utf-8') == files[0].content
            mode = archive.getinfo('scripts/setup.sh').external_attr >> 16
            assert mode & 0o777 == 0o755

    def test_zip_is_reproducible(self, project, agents, squads):
        files = generate_package(project, agents, squads)
        assert build_zip(files) == build_zip(files)

    def test_write_files(self, tmp_path, project):
        files = generate_package(project, [], [])
        written = write_files(files, tmp_path)
        assert len(written) == len(files)
        assert (tmp_path / 'aios.config.yaml').read_text(encoding='utf-8') == files[0].content
        assert (tmp_path / 'scripts' / 'setup.sh').stat().st_mode & 0o111

    def test_write_files_refuses_traversal(self, tmp_path):
        evil = GeneratedFile(path='../escape.txt', content='x', type=FileType.OTHER)
        with pytest.raises(ValueError):
            write_files([evil], tmp_path / 'out')


class TestRecords:

    def test_project_row_stores_workflows_in_config(self, project, agents, squads):
        workflows = generate_default_workflows(project.orchestration_pattern, agents, squads)
        row = project_row('user-1', project, workflows)
        assert row['user_id'] == 'user-1'
        assert row['orchestration_pattern'] == 'TASK_FIRST'
        assert row['config']['workflows'][0]['slug'] == 'workflow-writers'

    def test_project_round_trip(self, project, agents, squads):
        workflows = generate_default_workflows(project.orchestration_pattern, agents, squads)
        files = generate_package(project, agents, squads, workflows)
        row = {'id': 'p1', 'created_at': '2024-05-01T00:00:00+00:00', **project_row('u', project, workflows)}

        bundle = project_from_rows(
            row,
            agents=[agent_row('p1', a) for a in agents],
            files=[file_row('p1', f) for f in files],
        )
        assert bundle.project.name == project.name
        assert bundle.project.id == 'p1'
        assert 'workflows' not in bundle.project.config
        assert bundle.workflows == tuple(workflows)
        assert [a.slug for a in bundle.agents] == ['pm', 'dev', 'copy-editor']
        assert bundle.agents[0].category is not None
        assert [f.path for f in bundle.files] == [f.path for f in files]
        assert bundle.compliance_results() == {}

    def test_compliance_results_from_files(self, project):
        row = {'id': 'p1', **project_row('u', project)}
        bundle = project_from_rows(row, files=[
            {'path': 'README.md', 'content': '', 'file_type': 'md',
             'compliance_status': 'failed', 'compliance_notes': 'Missing setup'},
            {'path': 'odd.bin', 'content': '', 'file_type': 'binary'},
        ])
        assert bundle.files[1].type == FileType.OTHER
        assert bundle.compliance_results()['README.md'].status == ComplianceStatus.FAILED

    def test_session_row_round_trip(self):
        state = wizard.next_step(wizard.initial_state())
        state = wizard.set_integration(state, IntegrationType.MIRO)
        row = {'id': 'sess-1', **session_row('u', state)}
        assert row['current_step'] == 1
        assert row['completed'] is False

        restored = state_from_session_row(row)
        assert restored.session_id == 'sess-1'
        assert restored.current_step == WizardStep.PROJECT_CONFIG
        assert restored.integrations == state.integrations
        assert restored.messages == state.messages

    def test_session_row_without_state_uses_step_index(self):
        restored = state_from_session_row({'id': 's', 'current_step': 3, 'messages': [
            {'role': 'user', 'content': 'hello'}
        ]})
        assert restored.current_step == WizardStep.SQUADS
        assert restored.messages[0].content == 'hello'
