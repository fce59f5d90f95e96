'''Pairwise preference matrices for Condorcet methods.

The matrices are lists of lists indexed by the position of the options in
an explicit ordered option list, which is fixed before counting. Position
order therefore also determines the iteration order wherever ties are
resolved.
'''

from typing import List, Dict, Iterable
from numbers import Number

from liquidvote.vote import Ballot, is_rank


Matrix = List[List[Number]]


def preference_matrix(ballots: Iterable[Ballot],
                      options: List[str],
                      weighted: bool = True,
                      ) -> Matrix:
    '''Count pairwise preferences from ranked ballots.

    The entry ``[i][j]`` is the number (or total weight) of ballots ranking
    option i strictly better than option j. Options without an integer rank
    on a ballot are not compared on that ballot.

    :param ballots: Ranked choice ballots.
    :param options: The options to compare, in a fixed order.
    :param weighted: Whether to count ballot weights or just ballots.
    '''
    index = {option: i for i, option in enumerate(options)}
    n = len(options)
    zero = 0.0 if weighted else 0
    matrix = [[zero] * n for i in range(n)]
    for ballot in ballots:
        increment = ballot.weight if weighted else 1
        ranked = [
            (index[option], rank)
            for option, rank in ballot.choice.ranks.items()
            if option in index and is_rank(rank)
        ]
        for i, rank_i in ranked:
            for j, rank_j in ranked:
                if rank_i < rank_j:
                    matrix[i][j] += increment
    return matrix


def strongest_paths(matrix: Matrix) -> Matrix:
    '''Compute the strengths of the strongest paths between all pairs.

    Uses the Floyd-Warshall widest path scheme: the strength of a path is
    its weakest link and the strongest path between two options is the
    one with the strongest weakest link.

    :param matrix: The pairwise preference matrix.
    '''
    n = len(matrix)
    paths = [list(row) for row in matrix]
    for k in range(n):
        for i in range(n):
            if i == k:
                continue
            for j in range(n):
                if j == i or j == k:
                    continue
                via = min(paths[i][k], paths[k][j])
                if via > paths[i][j]:
                    paths[i][j] = via
    return paths


def beats(matrix: Matrix, i: int, j: int) -> bool:
    return matrix[i][j] > matrix[j][i]


def row_sums(matrix: Matrix, options: List[str]) -> Dict[str, Number]:
    '''Sum the preferences of each option over all others.'''
    return {
        option: sum(val for j, val in enumerate(matrix[i]) if j != i)
        for i, option in enumerate(options)
    }


def to_nested(matrix: Matrix, options: List[str]) -> Dict[str, Dict[str, Number]]:
    '''Convert a matrix to a nested dictionary, leaving out the diagonal.'''
    return {
        opt1: {
            opt2: matrix[i][j]
            for j, opt2 in enumerate(options) if i != j
        }
        for i, opt1 in enumerate(options)
    }
