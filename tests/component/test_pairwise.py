import sys
import os

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))
from liquidvote.component import pairwise
from liquidvote.vote import Ballot, RankedChoice


def test_preference_matrix_weighted():
    ballots = [
        Ballot(RankedChoice({'A': 1, 'B': 2}), 2.0),
        Ballot(RankedChoice({'B': 1, 'C': 2}), 0.5),
    ]
    matrix = pairwise.preference_matrix(ballots, ['A', 'B', 'C'])
    assert matrix == [
        [0.0, 2.0, 0.0],
        [0.0, 0.0, 0.5],
        [0.0, 0.0, 0.0],
    ]


def test_preference_matrix_unweighted():
    ballots = [
        Ballot(RankedChoice({'A': 1, 'B': 2}), 2.0),
        Ballot(RankedChoice({'A': 2, 'B': 1}), 0.5),
        Ballot(RankedChoice({'A': 1, 'B': 1}), 3.0),
    ]
    matrix = pairwise.preference_matrix(ballots, ['A', 'B'], weighted=False)
    assert matrix == [[0, 1], [1, 0]]


def test_preference_matrix_skips_invalid_ranks():
    ballots = [
        Ballot(RankedChoice({'A': 1, 'B': 'second', 'X': 3}), 1.0),
    ]
    matrix = pairwise.preference_matrix(ballots, ['A', 'B'])
    assert matrix == [[0.0, 0.0], [0.0, 0.0]]


def test_strongest_paths():
    matrix = [
        [0, 5, 0],
        [0, 0, 4],
        [3, 0, 0],
    ]
    assert pairwise.strongest_paths(matrix) == [
        [0, 5, 4],
        [3, 0, 4],
        [3, 3, 0],
    ]
    assert matrix[0][2] == 0


@pytest.mark.parametrize('i, j, expected', [
    (0, 1, True),
    (1, 0, False),
    (1, 2, False),
])
def test_beats(i, j, expected):
    matrix = [[0, 2, 1], [1, 0, 1], [1, 1, 0]]
    assert pairwise.beats(matrix, i, j) == expected


def test_row_sums_and_nesting():
    matrix = [[9, 2, 1], [1, 9, 1], [1, 1, 9]]
    options = ['A', 'B', 'C']
    assert pairwise.row_sums(matrix, options) == {'A': 3, 'B': 2, 'C': 2}
    assert pairwise.to_nested(matrix, options) == {
        'A': {'B': 2, 'C': 1},
        'B': {'A': 1, 'C': 1},
        'C': {'A': 1, 'B': 1},
    }
