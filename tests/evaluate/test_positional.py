import sys
import os

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))
from liquidvote.evaluate.positional import BordaCount
from liquidvote.component.rankscore import Borda
from liquidvote.vote import Ballot, RankedChoice

BALLOTS = [
    Ballot(RankedChoice({'A': 1, 'B': 2, 'C': 3}), 1.0),
    Ballot(RankedChoice({'B': 1, 'A': 2, 'C': 3}), 5.0),
    Ballot(RankedChoice({'A': 1, 'C': 2, 'B': 3}), 1.0),
]


@pytest.mark.parametrize('scorer, expected', [
    (Borda(), {'A': 5, 'B': 3, 'C': 1}),
    (Borda(base=1), {'A': 8, 'B': 6, 'C': 4}),
])
def test_borda_variants(scorer, expected):
    result = BordaCount(scorer).tabulate(BALLOTS)
    assert result.scores == expected
    assert result.winner == 'A'


def test_borda_counts_ballots_once():
    result = BordaCount().tabulate(BALLOTS)
    assert result.total_votes == 3
    assert result.total_weight == pytest.approx(7.0)


def test_borda_skips_invalid_ranks():
    ballots = [
        Ballot(RankedChoice({'A': 0, 'B': 1}), 1.0),
        Ballot(RankedChoice({'A': 'best', 'B': 2}), 1.0),
    ]
    result = BordaCount().tabulate(ballots)
    assert result.scores == {'A': 0, 'B': 1}
    assert result.winner == 'B'


def test_borda_empty():
    result = BordaCount().tabulate([])
    assert result.winner is None
    assert result.scores == {}
