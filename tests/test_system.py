import sys
import os

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
import liquidvote.system
from liquidvote.delegation import Delegation, index_by_delegator
from liquidvote.system import VotingMethod, SYSTEMS
from liquidvote.vote import Ballot, ChoiceKind, DirectVote, SingleChoice


@pytest.mark.parametrize('name, method', [
    ('first_past_the_post', VotingMethod.FIRST_PAST_THE_POST),
    ('firstPastThePost', VotingMethod.FIRST_PAST_THE_POST),
    ('FIRST_PAST_THE_POST', VotingMethod.FIRST_PAST_THE_POST),
    ('majorityRunoff', VotingMethod.MAJORITY_RUNOFF),
    ('instantRunoff', VotingMethod.INSTANT_RUNOFF),
    ('STAR', VotingMethod.STAR),
    ('rangeVoting', VotingMethod.RANGE),
    ('bordaCount', VotingMethod.BORDA),
    ('kemenyYoung', VotingMethod.KEMENY_YOUNG),
    ('majorityJudgment', VotingMethod.MAJORITY_JUDGMENT),
    ('quadraticVoting', VotingMethod.QUADRATIC),
    ('dualChoice', VotingMethod.DUAL_CHOICE),
    ('weight', VotingMethod.WEIGHT),
])
def test_method_names(name, method):
    assert VotingMethod(name) is method


@pytest.mark.parametrize('name', ['plurality', 'first past the post', 42, None])
def test_unknown_method(name):
    with pytest.raises(ValueError):
        VotingMethod(name)
    with pytest.raises(ValueError):
        liquidvote.system.tabulate(name, [])


def test_every_method_has_a_system():
    assert set(SYSTEMS) == set(VotingMethod)
    assert len(SYSTEMS) == 15


@pytest.mark.parametrize('kind, expected', [
    (ChoiceKind.SINGLE, {
        VotingMethod.FIRST_PAST_THE_POST, VotingMethod.MAJORITY_RUNOFF,
        VotingMethod.DUAL_CHOICE, VotingMethod.WEIGHT,
    }),
    (ChoiceKind.MULTIPLE, {VotingMethod.APPROVAL, VotingMethod.WEIGHT}),
    (ChoiceKind.RANKED, {
        VotingMethod.SCHULZE, VotingMethod.INSTANT_RUNOFF,
        VotingMethod.CONDORCET, VotingMethod.BORDA, VotingMethod.KEMENY_YOUNG,
    }),
    (ChoiceKind.RATED, {
        VotingMethod.STAR, VotingMethod.RANGE, VotingMethod.MAJORITY_JUDGMENT,
        VotingMethod.QUADRATIC, VotingMethod.CUMULATIVE,
    }),
])
def test_available_systems(kind, expected):
    assert set(liquidvote.system.get_available_systems(kind)) == expected


def test_tabulate_by_name():
    result = liquidvote.system.tabulate(
        'firstPastThePost', [('A', 1.0), ('B', 2.0), ('A', 0.5)]
    )
    assert result.winner == 'B'
    assert result.total_votes == 3


def test_tabulate_raw_ranked():
    ballots = [
        Ballot({'A': 1, 'B': 2}, 1.0),
        Ballot({'B': 1, 'A': 2}, 3.0),
    ]
    assert liquidvote.system.tabulate('schulze', ballots).winner == 'B'
    assert liquidvote.system.tabulate('borda', ballots).scores == {
        'A': 1, 'B': 1
    }


def test_get_tabulator():
    tabulator = liquidvote.system.get_tabulator(VotingMethod.APPROVAL)
    assert tabulator.kind == ChoiceKind.MULTIPLE
    assert SYSTEMS[VotingMethod.APPROVAL].kind == ChoiceKind.MULTIPLE


def test_tally():
    direct_votes = {
        'B': DirectVote('B', 'p1', SingleChoice('Y'), 1.0),
        'C': DirectVote('C', 'p1', SingleChoice('X'), 1.0),
        'E': DirectVote('E', 'p2', SingleChoice('X'), 5.0),
    }
    index = index_by_delegator([Delegation('A', 'D', 0.5)])
    result = liquidvote.system.tally(
        VotingMethod.FIRST_PAST_THE_POST, 'p1', direct_votes, index,
        pending={'A': Ballot(SingleChoice('Y'), 1.0)},
    )
    assert result.scores == {'Y': pytest.approx(1.5), 'X': pytest.approx(1.0)}
    assert result.winner == 'Y'
    assert result.total_votes == 3
