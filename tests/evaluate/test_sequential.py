import sys
import os

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))
from liquidvote.evaluate.sequential import InstantRunoff, MajorityRunoff
from liquidvote.vote import Ballot, RankedChoice, SingleChoice


def single(*pairs):
    return [Ballot(SingleChoice(opt), weight) for opt, weight in pairs]


def ranked(*rankings):
    return [Ballot(RankedChoice(ranks), 1.0) for ranks in rankings]


def test_runoff_first_round_majority():
    ballots = single(('A', 3.0), ('B', 1.5), ('C', 1.0))
    result = MajorityRunoff().tabulate(ballots)
    assert result.winner == 'A'
    assert result.majority_achieved
    assert not result.runoff_needed
    assert result.round == 1
    assert result.total_weight == pytest.approx(5.5)


def test_runoff_second_round():
    ballots = single(('A', 2.0), ('B', 1.5), ('C', 1.0), ('B', 0.75))
    result = MajorityRunoff().tabulate(ballots)
    assert not result.majority_achieved
    assert result.runoff_needed
    assert result.round == 2
    assert result.runoff_scores == {'B': 2.25, 'A': 2.0}
    assert result.total_weight_runoff == pytest.approx(4.25)
    assert result.winner == 'B'


def test_runoff_tie_goes_to_first_round_leader():
    ballots = single(('A', 2.0), ('B', 2.0), ('C', 1.0))
    result = MajorityRunoff().tabulate(ballots)
    assert result.runoff_needed
    assert result.winner == 'A'


def test_runoff_exact_half_is_no_majority():
    ballots = single(('A', 2.0), ('B', 1.0), ('C', 1.0))
    result = MajorityRunoff().tabulate(ballots)
    assert result.runoff_needed
    assert result.winner == 'A'


def test_runoff_zero_total():
    result = MajorityRunoff().tabulate(single(('A', 0.0)))
    assert result.winner is None
    assert result.message
    assert MajorityRunoff().tabulate([]).winner is None


def test_irv_majority_in_first_round():
    ballots = ranked(
        {'A': 1, 'B': 2}, {'A': 1, 'C': 2}, {'B': 1, 'A': 2},
    )
    result = InstantRunoff().tabulate(ballots)
    assert result.winner == 'A'
    assert len(result.rounds) == 1
    assert result.percentages()[0]['A'] == '66.7%'


def test_irv_elimination_transfers():
    ballots = ranked(
        {'A': 1, 'B': 2, 'C': 3},
        {'A': 1, 'B': 2, 'C': 3},
        {'B': 1, 'A': 2, 'C': 3},
        {'B': 1, 'C': 2, 'A': 3},
        {'C': 1, 'B': 2, 'A': 3},
    )
    result = InstantRunoff().tabulate(ballots)
    assert result.rounds[0] == {'A': 2, 'B': 2, 'C': 1}
    assert result.eliminated == ['C']
    assert result.rounds[1] == {'A': 2, 'B': 3}
    assert result.winner == 'B'


def test_irv_unweighted():
    ballots = [
        Ballot(RankedChoice({'A': 1}), 100.0),
        Ballot(RankedChoice({'B': 1}), 1.0),
        Ballot(RankedChoice({'B': 1}), 1.0),
    ]
    assert InstantRunoff().tabulate(ballots).winner == 'B'


def test_irv_last_remaining_wins():
    ballots = ranked({'A': 1}, {'B': 1}, {'C': 1}, {'C': 1}, {}, {})
    result = InstantRunoff().tabulate(ballots)
    assert result.eliminated == ['A', 'B']
    assert result.winner == 'C'


def test_irv_ignores_invalid_ranks():
    ballots = ranked({'A': 0, 'B': 1}, {'A': 'first', 'B': 2}, {'A': 1})
    result = InstantRunoff().tabulate(ballots)
    assert result.rounds[0] == {'A': 1, 'B': 2}
    assert result.winner == 'B'


def test_irv_empty():
    result = InstantRunoff().tabulate([])
    assert result.winner is None
    assert result.rounds == []
