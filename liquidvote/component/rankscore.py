'''Objects to assign scores to ranks in positional voting systems like Borda.

A rank scorer turns the rank an option received on a ballot into a number
of points, given the total number of options in the contest. This is the
essence of the Borda count.
'''

import abc
from numbers import Number

from liquidvote.persist import simple_serialization


class RankScorer(metaclass=abc.ABCMeta):
    '''An abstract base class for rank scorers.

    Rank scorers must provide a `score()` method that returns the points for
    a rank (1 being the best) out of a given number of options.
    '''
    @abc.abstractmethod
    def score(self, rank: int, n_options: int) -> Number:
        raise NotImplementedError


@simple_serialization
class Borda(RankScorer):
    '''Borda rank scorer.

    Gives ``n_options - rank + base`` points, so with the default base of
    zero, the first rank gets one point less than the number of options and
    the last rank gets nothing. Ranks beyond the number of options yield
    negative scores; they are not clipped.

    :param base: The score to assign to the option ranked last.
    '''
    def __init__(self, base: int = 0):
        self.base = base

    def score(self, rank: int, n_options: int) -> int:
        return n_options - rank + self.base

