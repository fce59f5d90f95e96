'''Approval voting tabulation.

In approval voting, each voter selects any number of options they approve
of. Each selected option receives the full weight of the ballot; the option
with the highest total wins. Unlike plurality, an option needs at least
some positive approval weight to win.
'''

from typing import List

from liquidvote.vote import Ballot, ChoiceKind
from liquidvote.evaluate.core import (
    Tabulator, TabulationResult, first_max, tally_multiple, count_weight
)
from liquidvote.persist import simple_serialization


@simple_serialization
class Approval(Tabulator):
    '''Approval voting tabulator over multiple choice ballots.'''
    kind = ChoiceKind.MULTIPLE

    def evaluate(self, ballots: List[Ballot]) -> TabulationResult:
        counts = tally_multiple(ballots)
        return TabulationResult(
            winner=first_max(counts, floor=0.0),
            scores=counts,
            total_votes=len(ballots),
            total_weight=count_weight(ballots),
        )
