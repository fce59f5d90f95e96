import sys
import os
import datetime
import logging

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
from liquidvote.audit import AuditEventType, AuditTrail
from liquidvote.delegation import Delegation, index_by_delegator
from liquidvote.resolve import (
    DelegationResolver, collect_effective_votes, resolve_vote, to_ballots
)
from liquidvote.vote import Ballot, DirectVote, SingleChoice

X = SingleChoice('X')
Y = SingleChoice('Y')
Z = SingleChoice('Z')
FIXED_TIME = datetime.datetime(2024, 1, 1, tzinfo=datetime.timezone.utc)


def direct(voter_id, choice, weight=1.0, proposal_id='p1'):
    return voter_id, DirectVote(voter_id, proposal_id, choice, weight)


def test_pending_vote_lands_on_delegatee():
    index = index_by_delegator([Delegation('A', 'B', 0.8)])
    vote = resolve_vote('A', 'p1', {}, index, X, 0.9)
    assert vote.holder_id == 'B'
    assert vote.choice == X
    assert vote.effective_weight == pytest.approx(0.72)
    assert vote.original_voter_id == 'A'
    assert not vote.is_direct
    assert vote.path == ('A', 'B')
    assert vote.delegated_through == Delegation('A', 'B', 0.8)


def test_direct_vote_precedence():
    index = index_by_delegator([Delegation('A', 'B', 0.5)])
    votes = dict([direct('A', X, 2.0), direct('B', Y)])
    vote = resolve_vote('A', 'p1', votes, index, X, 2.0)
    assert vote.holder_id == 'A'
    assert vote.is_direct
    assert vote.choice == X
    assert vote.effective_weight == pytest.approx(2.0)
    assert vote.delegated_through is None
    assert vote.path == ('A', )


def test_weight_composition():
    index = index_by_delegator([
        Delegation('A', 'B', 0.5),
        Delegation('B', 'C', 0.4),
    ])
    votes = dict([direct('C', Y, 1.0)])
    vote = resolve_vote('A', 'p1', votes, index, X, 0.9)
    assert vote.holder_id == 'C'
    assert vote.choice == Y
    assert vote.is_direct
    assert vote.original_voter_id == 'C'
    assert vote.effective_weight == pytest.approx(0.5 * 0.4)
    assert vote.path == ('A', 'B', 'C')
    assert vote.delegated_through.delegator_id == 'B'


def test_fallback_weight_composition():
    index = index_by_delegator([
        Delegation('A', 'B', 0.5),
        Delegation('B', 'C', 0.4),
    ])
    vote = resolve_vote('A', 'p1', {}, index, X, 0.9)
    assert vote.holder_id == 'C'
    assert vote.effective_weight == pytest.approx(0.9 * 0.5 * 0.4)


def test_no_delegation_no_vote():
    vote = resolve_vote('A', 'p1', {}, {}, X, 0.7)
    assert vote.holder_id == 'A'
    assert vote.is_direct
    assert vote.effective_weight == pytest.approx(0.7)
    assert resolve_vote('A', 'p1', {}, {}, None) is None


def test_other_proposal_vote_ignored():
    index = index_by_delegator([Delegation('A', 'B', 0.5)])
    votes = dict([direct('B', Y, proposal_id='p2')])
    vote = resolve_vote('A', 'p1', votes, index, X)
    assert vote.choice == X
    assert vote.holder_id == 'B'


def test_best_branch_by_weight():
    index = index_by_delegator([
        Delegation('A', 'B', 0.3),
        Delegation('A', 'C', 0.9),
        Delegation('A', 'D', 0.9),
    ])
    votes = dict([direct('B', X), direct('C', Y), direct('D', Z)])
    vote = resolve_vote('A', 'p1', votes, index, None)
    assert vote.holder_id == 'C'
    assert vote.choice == Y
    assert vote.effective_weight == pytest.approx(0.9)


def test_branch_weight_includes_direct_weight():
    index = index_by_delegator([
        Delegation('A', 'B', 1.0),
        Delegation('A', 'C', 0.5),
    ])
    votes = dict([direct('B', X, 0.2), direct('C', Y, 1.0)])
    vote = resolve_vote('A', 'p1', votes, index, None)
    assert vote.choice == Y


@pytest.mark.parametrize('topic, expected_holder', [
    ('env', 'C'),
    ('tax', 'B'),
    (None, 'B'),
])
def test_topic_delegations(topic, expected_holder):
    index = index_by_delegator([
        Delegation('A', 'B', 1.0),
        Delegation('A', 'C', 1.0, topic_id='env'),
    ])
    votes = dict([direct('B', X), direct('C', Y)])
    vote = resolve_vote('A', 'p1', votes, index, Z, topic_id=topic)
    assert vote.holder_id == expected_holder


def test_cycle_terminates():
    index = index_by_delegator([
        Delegation('A', 'B', 0.5),
        Delegation('B', 'C', 0.5),
        Delegation('C', 'A', 0.5),
    ])
    for voter in 'ABC':
        vote = resolve_vote(voter, 'p1', {}, index, X, 1.0)
        assert vote is not None
        assert len(vote.path) == 3
        assert len(set(vote.path)) == 3
        assert vote.effective_weight == pytest.approx(0.25)


def test_cycle_with_exit():
    index = index_by_delegator([
        Delegation('A', 'B', 1.0),
        Delegation('B', 'A', 1.0),
        Delegation('B', 'C', 0.5),
    ])
    votes = dict([direct('C', Y)])
    vote = resolve_vote('A', 'p1', votes, index, X)
    assert vote.holder_id == 'C'
    assert vote.effective_weight == pytest.approx(0.5)


def test_depth_cap():
    voters = [f'v{i}' for i in range(15)]
    index = index_by_delegator([
        Delegation(voters[i], voters[i + 1]) for i in range(len(voters) - 1)
    ])
    votes = dict([direct('v14', Y)])
    vote = DelegationResolver(max_depth=10).resolve(
        'v0', 'p1', votes, index, X, 1.0
    )
    assert vote.holder_id == 'v10'
    assert vote.choice == X
    assert len(vote.path) == 11
    deep = DelegationResolver(max_depth=20).resolve(
        'v0', 'p1', votes, index, X, 1.0
    )
    assert deep.holder_id == 'v14'
    assert deep.choice == Y


def test_deterministic():
    index = index_by_delegator([
        Delegation('A', 'B', 0.5),
        Delegation('A', 'C', 0.5),
    ])
    votes = dict([direct('B', X), direct('C', Y)])
    first = resolve_vote('A', 'p1', votes, index, Z)
    for i in range(5):
        assert resolve_vote('A', 'p1', votes, index, Z) == first
    assert first.holder_id == 'B'


def test_audit_events():
    trail = AuditTrail()
    resolver = DelegationResolver(clock=lambda: FIXED_TIME, audit=trail)
    index = index_by_delegator([Delegation('A', 'B', 0.8)])
    vote = resolver.resolve('A', 'p1', {}, index, X, 0.9)
    assert vote.timestamp == FIXED_TIME
    assert [ev.event_type for ev in trail] == [
        AuditEventType.VOTE_CAST, AuditEventType.VOTE_PROPAGATED
    ]
    propagated = trail.of_type(AuditEventType.VOTE_PROPAGATED)[0]
    assert propagated.actor_id == 'A'
    assert propagated.target_id == 'B'
    assert propagated.details['path'] == ['A', 'B']
    assert propagated.details['effective_weight'] == pytest.approx(0.72)
    assert propagated.timestamp == FIXED_TIME
    resolver.resolve('Q', 'p1', {}, {}, None)
    assert trail.events[-1].event_type == AuditEventType.VOTE_UNRESOLVED
    assert len(trail.for_actor('Q')) == 2


def test_collect_effective_votes():
    index = index_by_delegator([
        Delegation('B', 'A', 0.5),
        Delegation('D', 'E', 0.8),
    ])
    votes = dict([direct('A', X), direct('C', Y, 2.0)])
    pending = {'D': (Z, 1.0), 'A': (Y, 5.0)}
    effective = collect_effective_votes('p1', votes, index, pending=pending)
    assert list(effective.keys()) == ['A', 'C', 'E']
    assert effective['E'].choice == Z
    assert effective['E'].effective_weight == pytest.approx(0.8)
    assert effective['C'].effective_weight == pytest.approx(2.0)
    ballots = to_ballots(effective)
    assert ballots[0] == Ballot(X, 1.0)
    assert len(ballots) == 3


def test_collect_later_replaces_same_holder():
    index = index_by_delegator([
        Delegation('B', 'A', 0.5),
    ])
    votes = dict([direct('A', X)])
    effective = collect_effective_votes('p1', votes, index,
                                        pending={'B': Ballot(Y, 1.0)})
    assert list(effective.keys()) == ['A']
    assert effective['A'].original_voter_id == 'A'
    assert effective['A'].effective_weight == pytest.approx(0.5)


def test_collect_pending_with_vote_on_other_proposal():
    votes = {'A': DirectVote('A', 'p2', X)}
    effective = collect_effective_votes('p1', votes, {},
                                        pending={'A': Ballot(Y, 1.0)})
    assert list(effective.keys()) == ['A']
    assert effective['A'].choice == Y
    assert effective['A'].is_direct
    assert effective['A'].proposal_id == 'p1'


def test_collect_pending_ignored_with_direct_vote():
    votes = dict([direct('A', X)])
    effective = collect_effective_votes('p1', votes, {},
                                        pending={'A': Ballot(Y, 3.0)})
    assert effective['A'].choice == X
    assert effective['A'].effective_weight == pytest.approx(1.0)


def test_cycle_pruning_logged_as_info(caplog):
    caplog.set_level(logging.DEBUG, logger='liquidvote.resolve')
    index = index_by_delegator([
        Delegation('A', 'B', 1.0),
        Delegation('B', 'A', 1.0),
    ])
    resolve_vote('A', 'p1', {}, index, X)
    pruned = [record for record in caplog.records
              if record.getMessage().startswith('pruning circular')]
    assert pruned
    assert all(record.levelno == logging.INFO for record in pruned)
    assert not any(record.levelno >= logging.WARNING
                   for record in caplog.records)


def test_depth_exceeded_logged_as_warning(caplog):
    caplog.set_level(logging.DEBUG, logger='liquidvote.resolve')
    index = index_by_delegator([
        Delegation(f'v{i}', f'v{i + 1}') for i in range(5)
    ])
    DelegationResolver(max_depth=2).resolve('v0', 'p1', {}, index, X, 1.0)
    warnings = [record for record in caplog.records
                if record.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert 'depth' in warnings[0].getMessage()
