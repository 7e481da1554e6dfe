"""
Architecture Diagram - Node/edge graph of a project

Three tiers are laid out top to bottom: the orchestrator, the agents and
the squads. The graph is rebuilt from the model on every request.
"""

import logging
from dataclasses import dataclass, field, asdict
from typing import Dict, Any, List, Optional, Sequence, Tuple

from aios_forge.catalog import get_pattern
from aios_forge.models import Agent, Squad, Project, ProjectWorkflow, OrchestrationPattern
from aios_forge.wizard import WizardState, add_squad_member, remove_squad_member

logger = logging.getLogger(__name__)

TIER_Y = {
    'orchestrator': 30,
    'agents': 180,
    'squads': 360,
}
NODE_WIDTH = 160
NODE_GAP = 20
SQUAD_EXTRA_WIDTH = 40
MIN_WIDTH = 200
ORCHESTRATOR_OFFSET = 90

ORCHESTRATOR_ID = 'orchestrator'
AGENT_PREFIX = 'agent-'
SQUAD_PREFIX = 'squad-'


@dataclass(frozen=True)
class DiagramNode:
    id: str
    type: str
    x: float
    y: float
    label: str
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DiagramEdge:
    id: str
    source: str
    target: str
    kind: str


@dataclass(frozen=True)
class Diagram:
    nodes: Tuple[DiagramNode, ...]
    edges: Tuple[DiagramEdge, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'nodes': [asdict(n) for n in self.nodes],
            'edges': [asdict(e) for e in self.edges],
        }


def agent_node_id(slug: str) -> str:
    return f"{AGENT_PREFIX}{slug}"


def squad_node_id(slug: str) -> str:
    return f"{SQUAD_PREFIX}{slug}"


def _row_width(count: int, node_width: int) -> int:
    return count * (node_width + NODE_GAP) - NODE_GAP


def _workflow_edges(workflows: Sequence[ProjectWorkflow], agent_slugs: set) -> List[DiagramEdge]:
    """Edges from each dependency's agent to the dependent step's agent, one per pair."""
    seen = set()
    edges = []
    for workflow in workflows:
        steps_by_id = {s.id: s for s in workflow.steps}
        for step in workflow.steps:
            for dep in step.depends_on:
                upstream = steps_by_id.get(dep)
                if upstream is None:
                    continue
                source, target = upstream.agent_slug, step.agent_slug
                if source == target or source not in agent_slugs or target not in agent_slugs:
                    continue
                if (source, target) in seen:
                    continue
                seen.add((source, target))
                # slugify never emits ":", so ids stay distinct for hyphenated slugs
                edges.append(DiagramEdge(
                    id=f"edge-flow:{source}:{target}",
                    source=agent_node_id(source),
                    target=agent_node_id(target),
                    kind='workflow',
                ))
    return edges


def build_diagram(
    project: Project,
    agents: Sequence[Agent],
    squads: Sequence[Squad],
    workflows: Sequence[ProjectWorkflow] = (),
) -> Diagram:
    """Build the three-tier architecture graph for a project."""
    pattern = OrchestrationPattern(project.orchestration_pattern)
    pattern_info = get_pattern(pattern)
    squad_width = NODE_WIDTH + SQUAD_EXTRA_WIDTH

    agent_total = _row_width(len(agents), NODE_WIDTH)
    squad_total = _row_width(len(squads), squad_width)
    max_width = max(agent_total, squad_total, MIN_WIDTH)

    nodes: List[DiagramNode] = [DiagramNode(
        id=ORCHESTRATOR_ID,
        type='orchestrator',
        x=max_width / 2 - ORCHESTRATOR_OFFSET,
        y=TIER_Y['orchestrator'],
        label=pattern_info.name if pattern_info else pattern.value,
        data={'sublabel': 'Orchestrator', 'pattern': pattern.value},
    )]
    edges: List[DiagramEdge] = []

    sequential = pattern == OrchestrationPattern.SEQUENTIAL_PIPELINE
    agent_start = (max_width - agent_total) / 2
    for i, agent in enumerate(agents):
        node_id = agent_node_id(agent.slug)
        nodes.append(DiagramNode(
            id=node_id,
            type='agent',
            x=agent_start + i * (NODE_WIDTH + NODE_GAP),
            y=TIER_Y['agents'],
            label=agent.name,
            data={
                'sublabel': agent.role[:40],
                'category': agent.category.value if agent.category else '',
            },
        ))
        if sequential and i > 0:
            edges.append(DiagramEdge(
                id=f"edge-chain-{i}",
                source=agent_node_id(agents[i - 1].slug),
                target=node_id,
                kind='chain',
            ))
        if not sequential or i == 0:
            edges.append(DiagramEdge(
                id=f"edge-orch-{agent.slug}",
                source=ORCHESTRATOR_ID,
                target=node_id,
                kind='orchestration',
            ))

    agent_slugs = {a.slug for a in agents}
    squad_start = (max_width - squad_total) / 2
    for i, squad in enumerate(squads):
        node_id = squad_node_id(squad.slug)
        nodes.append(DiagramNode(
            id=node_id,
            type='squad',
            x=squad_start + i * (squad_width + NODE_GAP),
            y=TIER_Y['squads'],
            label=squad.name,
            data={'agent_count': len(squad.agent_ids), 'task_count': len(squad.tasks)},
        ))
        for agent_slug in squad.agent_ids:
            if agent_slug in agent_slugs:
                edges.append(DiagramEdge(
                    id=f"edge-squad:{squad.slug}:{agent_slug}",
                    source=agent_node_id(agent_slug),
                    target=node_id,
                    kind='membership',
                ))

    edges.extend(_workflow_edges(workflows, agent_slugs))
    return Diagram(nodes=tuple(nodes), edges=tuple(edges))


def _membership_pair(source: str, target: str) -> Optional[Tuple[str, str]]:
    """Return (agent_slug, squad_slug) for an agent<->squad connection in either direction."""
    if source.startswith(AGENT_PREFIX) and target.startswith(SQUAD_PREFIX):
        return source[len(AGENT_PREFIX):], target[len(SQUAD_PREFIX):]
    if source.startswith(SQUAD_PREFIX) and target.startswith(AGENT_PREFIX):
        return target[len(AGENT_PREFIX):], source[len(SQUAD_PREFIX):]
    return None


def is_valid_connection(source: str, target: str) -> bool:
    return _membership_pair(source or '', target or '') is not None


def connect(state: WizardState, source: str, target: str) -> WizardState:
    """Interpret a drawn agent<->squad edge as adding the agent to the squad."""
    pair = _membership_pair(source or '', target or '')
    if pair is None:
        return state
    agent_slug, squad_slug = pair
    logger.debug(f"Connecting agent {agent_slug} to squad {squad_slug}")
    return add_squad_member(state, squad_slug, agent_slug)


def disconnect(state: WizardState, source: str, target: str) -> WizardState:
    """Interpret a deleted agent<->squad edge as removing the agent from the squad."""
    pair = _membership_pair(source or '', target or '')
    if pair is None:
        return state
    agent_slug, squad_slug = pair
    return remove_squad_member(state, squad_slug, agent_slug)
