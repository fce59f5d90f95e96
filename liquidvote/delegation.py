'''Delegations between voters and queries over the delegation graph.

A delegation is a directed edge from a delegator to a delegatee carrying a
weight in (0, 1]. It can be general or restricted to a topic; a delegation is
applicable to a proposal if it is general or if its topic equals the topic of
the proposal. If a voter has both general and topic-specific delegations
applicable to a topic, the topic-specific ones supersede the general ones.

The delegation graph may contain cycles. None of the functions here fail on
them; traversals keep an explicit path and prune edges leading back into it.
'''

import collections
import dataclasses
import datetime
import logging
from typing import Any, List, Dict, Optional, Iterable, Mapping, Sequence

logger = logging.getLogger(__name__)

MAX_DEPTH = 10

DelegationIndex = Mapping[str, Sequence['Delegation']]


class DelegationError(ValueError):
    '''A delegation record violates the delegation invariants.'''
    pass


@dataclasses.dataclass(frozen=True)
class Delegation:
    '''A delegation of voting influence from one voter to another.

    :param delegator_id: The voter delegating their vote.
    :param delegatee_id: The voter receiving the delegation.
    :param weight: The share of influence passed on, in (0, 1].
    :param topic_id: The topic the delegation is restricted to; None for
        a general delegation.
    :param active: Whether the delegation has not been revoked.
    :param valid_until: Expiration time; None means no expiration.
    :param id: An identifier of the delegation record, if any.
    :raises DelegationError: For self-delegation or a weight out of range.
    '''
    delegator_id: str
    delegatee_id: str
    weight: float = 1.0
    topic_id: Optional[str] = None
    active: bool = True
    valid_until: Optional[datetime.datetime] = None
    id: Optional[str] = None

    def __post_init__(self):
        if self.delegator_id == self.delegatee_id:
            raise DelegationError(
                f'self-delegation is not allowed: {self.delegator_id}'
            )
        if not 0 < self.weight <= 1:
            raise DelegationError(
                f'delegation weight must be in (0, 1], got {self.weight}'
            )

    def is_applicable(self, topic_id: Optional[str]) -> bool:
        '''Return True if the delegation applies to a proposal on the topic.'''
        return self.topic_id is None or self.topic_id == topic_id

    def is_live(self, at: Optional[datetime.datetime] = None) -> bool:
        '''Return True if the delegation is active and not expired at `at`.

        If `at` is None, only the active flag is checked.
        '''
        if not self.active:
            return False
        return at is None or self.valid_until is None or self.valid_until > at


def applicable_delegations(delegations: Iterable[Delegation],
                           topic_id: Optional[str] = None,
                           ) -> List[Delegation]:
    '''Select the active outgoing delegations of a voter applicable to a topic.

    Topic-specific delegations for the topic supersede general ones: if any of
    them is present, the general delegations are dropped.

    :param delegations: Outgoing delegations of a single voter, in their
        preference order (which is retained).
    :param topic_id: Topic of the proposal; None for a general proposal.
    '''
    applicable = [
        deleg for deleg in delegations
        if deleg.active and deleg.is_applicable(topic_id)
    ]
    if topic_id is not None:
        specific = [deleg for deleg in applicable if deleg.topic_id is not None]
        if specific:
            return specific
    return applicable


def index_by_delegator(delegations: Iterable[Delegation],
                       at: Optional[datetime.datetime] = None,
                       ) -> Dict[str, List[Delegation]]:
    '''Group live delegations by their delegator, retaining input order.

    :param delegations: Delegation records.
    :param at: Time to check expiration against; None checks only the
        active flag.
    '''
    index = collections.OrderedDict()
    for deleg in delegations:
        if deleg.is_live(at):
            index.setdefault(deleg.delegator_id, []).append(deleg)
    return dict(index)


def would_create_cycle(delegator_id: str,
                       delegatee_id: str,
                       by_delegator: DelegationIndex,
                       topic_id: Optional[str] = None,
                       max_depth: int = MAX_DEPTH,
                       ) -> bool:
    '''Check whether a new delegation would close a delegation cycle.

    Follows existing delegations from the prospective delegatee; when
    checking for a topic, both the topic-specific and general delegations
    are followed, otherwise only the general ones. Chains longer than
    `max_depth` are assumed to be cycles.

    :param delegator_id: The voter who wants to delegate.
    :param delegatee_id: The prospective delegatee.
    :param by_delegator: Existing delegations grouped by delegator.
    :param topic_id: Topic of the prospective delegation.
    :param max_depth: Maximum chain length to follow.
    '''
    if delegator_id == delegatee_id:
        logger.info('%s cannot delegate to themselves', delegator_id)
        return True
    return _reaches(
        delegatee_id, delegator_id, by_delegator, topic_id,
        [delegator_id], 0, max_depth
    )


def _reaches(current: str,
             target: str,
             by_delegator: DelegationIndex,
             topic_id: Optional[str],
             path: List[str],
             depth: int,
             max_depth: int,
             ) -> bool:
    if depth > max_depth:
        logger.warning('reached maximum depth %d checking for a cycle: %s',
                       max_depth, ' -> '.join(path))
        return True
    path = path + [current]
    for deleg in by_delegator.get(current, ()):
        if not deleg.active or not deleg.is_applicable(topic_id):
            continue
        next_id = deleg.delegatee_id
        if next_id == target:
            logger.info('circular delegation detected: %s',
                        ' -> '.join(path + [next_id]))
            return True
        if next_id in path:
            continue
        if _reaches(next_id, target, by_delegator, topic_id,
                    path, depth + 1, max_depth):
            return True
    return False


def represented_voters(target_id: str,
                       delegations: Iterable[Delegation],
                       topic_id: Optional[str] = None,
                       ) -> List[str]:
    '''List the voters represented by a voter through incoming delegations.

    Walks active delegations backwards (breadth-first) from the target. For
    a topic, delegations on that topic and general delegations count; without
    a topic, only general delegations count.

    :returns: The target followed by all directly or transitively delegating
        voters, in order of discovery.
    '''
    incoming = collections.defaultdict(list)
    for deleg in delegations:
        if deleg.active and deleg.is_applicable(topic_id):
            incoming[deleg.delegatee_id].append(deleg.delegator_id)
    represented = [target_id]
    seen = {target_id}
    queue = collections.deque([target_id])
    while queue:
        current = queue.popleft()
        for delegator_id in incoming[current]:
            if delegator_id not in seen:
                seen.add(delegator_id)
                represented.append(delegator_id)
                queue.append(delegator_id)
    logger.info('%s represents %d voters for topic %s',
                target_id, len(represented), topic_id)
    return represented


@dataclasses.dataclass
class DelegationNode:
    '''A voter in the delegation graph with its incident delegations.'''
    voter_id: str
    depth: int = -1
    delegated_from: List[Delegation] = dataclasses.field(default_factory=list)
    delegated_to: Optional[Delegation] = None


def delegation_graph(root_id: str,
                     delegations: Iterable[Delegation],
                     voters: Iterable[str] = (),
                     ) -> Dict[str, DelegationNode]:
    '''Build the delegation neighbourhood of a voter.

    All delegations are considered regardless of their state. Each voter
    gets a single outgoing edge for display; a general delegation is
    preferred over topic-specific ones. The neighbourhood contains all voters
    connected to the root in either direction, with their breadth-first
    distance from the root as depth.

    :param root_id: The voter to center the graph on.
    :param delegations: Delegation records.
    :param voters: Additional voters to include as nodes even if they have
        no delegations.
    :returns: Nodes of the neighbourhood keyed by voter, in order of
        discovery; empty if the root is not a known voter.
    '''
    nodes: Dict[str, DelegationNode] = collections.OrderedDict()
    for voter_id in voters:
        nodes[voter_id] = DelegationNode(voter_id)
    for deleg in delegations:
        for voter_id in (deleg.delegator_id, deleg.delegatee_id):
            if voter_id not in nodes:
                nodes[voter_id] = DelegationNode(voter_id)
        nodes[deleg.delegatee_id].delegated_from.append(deleg)
        delegator = nodes[deleg.delegator_id]
        if delegator.delegated_to is None or (
            delegator.delegated_to.topic_id is not None
            and deleg.topic_id is None
        ):
            delegator.delegated_to = deleg
    if root_id not in nodes:
        return {}
    connected = collections.OrderedDict()
    nodes[root_id].depth = 0
    connected[root_id] = nodes[root_id]
    queue = collections.deque([root_id])
    while queue:
        node = nodes[queue.popleft()]
        neighbours = [deleg.delegator_id for deleg in node.delegated_from]
        if node.delegated_to is not None:
            neighbours.append(node.delegated_to.delegatee_id)
        for neighbour_id in neighbours:
            if neighbour_id not in connected:
                nodes[neighbour_id].depth = node.depth + 1
                connected[neighbour_id] = nodes[neighbour_id]
                queue.append(neighbour_id)
    logger.info('delegation graph for %s has %d nodes out of %d voters',
                root_id, len(connected), len(nodes))
    return dict(connected)


def graph_summary(graph: Dict[str, DelegationNode]) -> Dict[str, Any]:
    '''Summarize a delegation graph as a plain dictionary of voter entries.'''
    return {
        voter_id: {
            'depth': node.depth,
            'delegated_from': [d.delegator_id for d in node.delegated_from],
            'delegated_to': (
                node.delegated_to.delegatee_id if node.delegated_to else None
            ),
        }
        for voter_id, node in graph.items()
    }
