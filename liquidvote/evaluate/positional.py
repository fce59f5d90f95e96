'''Positional (rank scoring) tabulation - the Borda count and its variants.'''

import logging
from typing import List

from liquidvote.vote import Ballot, ChoiceKind, is_rank
from liquidvote.evaluate.core import (
    Tabulator, TabulationResult, collect_options, count_weight, first_max
)
from liquidvote.component.rankscore import RankScorer, Borda
from liquidvote.persist import simple_serialization

logger = logging.getLogger(__name__)


@simple_serialization
class BordaCount(Tabulator):
    '''Borda count tabulator over ranked ballots.

    Every positive integer rank on a ballot gives the option a number of
    points determined by the rank scorer, out of the number of options
    mentioned on any ballot. Ballots are counted once each, regardless of
    their weight.

    :param scorer: The rank scorer; the default gives ``n_options - rank``.
    '''
    kind = ChoiceKind.RANKED

    def __init__(self, scorer: RankScorer = Borda()):
        self.scorer = scorer

    def evaluate(self, ballots: List[Ballot]) -> TabulationResult:
        options = collect_options(ballots)
        n_options = len(options)
        points = {option: 0 for option in options}
        for ballot in ballots:
            for option, rank in ballot.choice.ranks.items():
                if is_rank(rank) and rank > 0:
                    points[option] += self.scorer.score(rank, n_options)
        logger.debug('Borda points: %s', points)
        return TabulationResult(
            winner=first_max(points),
            scores=points,
            total_votes=len(ballots),
            total_weight=count_weight(ballots),
        )
